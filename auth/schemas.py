"""
Request and response models for the session consumer contract.

These Pydantic v2 models define what presentation components send in and get
back. They are intentionally separate from the dataclasses in auth/models.py,
which own the internal domain representation. The session manager maps
between the two.

Registration carries the sign-up form's validation rules so that a caller
bypassing the form cannot create an account the form would have refused.
Login and password-reset requests only require non-empty fields: a badly
formed email is simply an email with no account.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from auth.errors import InvalidInput
from auth.models import PublicUser

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Input to register(). Field messages match the sign-up form's wording.

    Name and email are stripped; the password is kept exactly as typed.
    """

    name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    password: str = Field(max_length=255)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        if not NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters and spaces")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )
        return value


class LoginRequest(BaseModel):
    # Email is stripped on purpose: RegisterRequest strips it too, so the stored
    # and submitted forms match exactly. Passwords are compared as typed.
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "Registration successful! Please login."


class LoginResponse(BaseModel):
    success: bool = True
    user: PublicUser


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str = "Password reset instructions sent to your email"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_request(model: type[BaseModel], data: BaseModel | dict) -> BaseModel:
    """Validate data against model, converting pydantic errors into InvalidInput.

    The first field error becomes the message, which is what a form shows
    next to the offending input.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        message = first["msg"].removeprefix("Value error, ")
        raise InvalidInput(message) from exc

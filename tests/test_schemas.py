"""Unit tests for auth/schemas.py -- consumer request validation.

Covers:
- Registration accepts the sign-up form's valid input and strips name/email
- Registration rejects each form rule with the form's own message
- Login and reset requests only require non-empty fields
- parse_request() passes model instances through and maps errors to InvalidInput
"""

from __future__ import annotations

import pytest

from auth.errors import InvalidInput
from auth.schemas import ForgotPasswordRequest, LoginRequest, RegisterRequest, parse_request

VALID = {"email": "a@b.com", "password": "Passw0rd", "name": "A B"}


class TestRegisterRequest:
    def test_valid_input(self) -> None:
        request = parse_request(RegisterRequest, VALID)
        assert request.email == "a@b.com"
        assert request.name == "A B"
        assert request.password == "Passw0rd"

    def test_strips_name_and_email_but_not_password(self) -> None:
        request = parse_request(RegisterRequest, {"email": " a@b.com ", "name": " A B ", "password": "Passw0rd "})
        assert request.email == "a@b.com"
        assert request.name == "A B"
        assert request.password == "Passw0rd "

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("name", "A", "Name must be at least 2 characters"),
            ("name", "R2 D2", "Name can only contain letters and spaces"),
            ("email", "not-an-email", "Please enter a valid email address"),
            ("email", "a@b", "Please enter a valid email address"),
            ("password", "Pass0", "Password must be at least 8 characters"),
            (
                "password",
                "password1",
                "Password must contain at least one uppercase letter, one lowercase letter, and one number",
            ),
            (
                "password",
                "Password",
                "Password must contain at least one uppercase letter, one lowercase letter, and one number",
            ),
        ],
    )
    def test_form_rules(self, field: str, value: str, message: str) -> None:
        with pytest.raises(InvalidInput) as excinfo:
            parse_request(RegisterRequest, {**VALID, field: value})
        assert excinfo.value.message == message

    def test_missing_field(self) -> None:
        with pytest.raises(InvalidInput) as excinfo:
            parse_request(RegisterRequest, {"email": "a@b.com", "password": "Passw0rd"})
        assert excinfo.value.code == "invalid_input"

    def test_model_instance_passes_through(self) -> None:
        request = RegisterRequest(**VALID)
        assert parse_request(RegisterRequest, request) is request


class TestLoginAndReset:
    def test_login_accepts_any_non_empty_email(self) -> None:
        request = parse_request(LoginRequest, {"email": "whatever", "password": "x"})
        assert request.email == "whatever"

    def test_login_keeps_password_whitespace(self) -> None:
        request = parse_request(LoginRequest, {"email": " a@b.com ", "password": " pw "})
        assert request.email == "a@b.com"
        assert request.password == " pw "

    @pytest.mark.parametrize("payload", [{"email": "", "password": "x"}, {"email": "a@b.com", "password": ""}])
    def test_login_requires_both_fields(self, payload: dict) -> None:
        with pytest.raises(InvalidInput):
            parse_request(LoginRequest, payload)

    def test_reset_requires_email(self) -> None:
        with pytest.raises(InvalidInput):
            parse_request(ForgotPasswordRequest, {"email": "   "})

"""
auth/errors.py -- Exception taxonomy for the auth layer.

Every error carries a stable machine code and a human-readable message, the
same {"code", "message"} pair the presentation layer renders. Business-rule
violations are raised verbatim to the caller; store read failures are
absorbed inside auth/store.py and never reach a consumer.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth failures."""

    code = "auth_error"
    default_message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidInput(AuthError):
    code = "invalid_input"
    default_message = "The submitted form is invalid."


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    default_message = "User with this email already exists"


class InvalidCredentials(AuthError):
    # Same message for unknown email and wrong password.
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class UnknownAccount(AuthError):
    code = "unknown_account"
    default_message = "No account found with this email address"


class MalformedToken(AuthError):
    code = "malformed_token"
    default_message = "Session token is malformed."


class StoreReadFailure(AuthError):
    code = "store_read_failure"
    default_message = "Could not read from local storage."


class StoreWriteFailure(AuthError):
    code = "store_write_failure"
    default_message = "Could not save to local storage. Please try again."


class AuthenticationRequired(AuthError):
    code = "unauthorized"
    default_message = "Authentication required."


class AdminRequired(AuthError):
    code = "forbidden"
    default_message = "Admin access required."

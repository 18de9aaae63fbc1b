"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store maps them to and from JSON, the session manager does the work.

Layer rule: no imports from core/ or any presentation code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class AuthState(str, Enum):
    """Settled states of the session manager.

    "Restoring" and "authenticating" are not states of their own; consumers
    see them as is_busy=True while the manager stays in its previous state.
    """

    unknown = "unknown"  # before restore() has completed
    anonymous = "anonymous"
    authenticated = "authenticated"


@dataclass(frozen=True)
class UserRecord:
    """A registered account as kept in the directory.

    password_secret is whatever tokens.store_password() produced. Only
    tokens.verify_password() may interpret it.
    """

    id: str
    email: str
    name: str
    password_secret: str
    role: str = ROLE_USER  # "user" or "admin"
    created_at: str = ""


@dataclass(frozen=True)
class PublicUser:
    """A UserRecord without its password secret.

    This is the only user shape handed to consumers or persisted as the
    current session user.
    """

    id: str
    email: str
    name: str
    role: str
    created_at: str = ""


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    email: str
    role: str
    expires_at: int  # epoch seconds


@dataclass(frozen=True)
class Session:
    user: PublicUser
    token: str

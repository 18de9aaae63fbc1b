"""
auth/admin.py -- The built-in demo administrator.

The admin account is a reserved credential, not a directory entry. The session
manager consults it only after the directory lookup has failed, and never
writes it to storage. Removing this module (and its two call sites in
auth/session.py) removes the account without touching directory logic.
"""

from __future__ import annotations

from datetime import datetime, timezone

from auth.models import ROLE_ADMIN, PublicUser
from auth.tokens import verify_password

ADMIN_EMAIL = "admin@careercompass.com"
_ADMIN_PASSWORD = "admin123"
_ADMIN_ID = "admin_1"
_ADMIN_NAME = "Admin User"


def is_admin_email(email: str) -> bool:
    return email == ADMIN_EMAIL


def match_admin(email: str, password: str) -> PublicUser | None:
    """Return a freshly stamped admin PublicUser if the credentials are the reserved pair."""
    if not is_admin_email(email) or not verify_password(password, _ADMIN_PASSWORD):
        return None
    return PublicUser(
        id=_ADMIN_ID,
        email=ADMIN_EMAIL,
        name=_ADMIN_NAME,
        role=ROLE_ADMIN,
        created_at=datetime.now(timezone.utc).isoformat(),
    )

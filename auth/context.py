"""
auth/context.py -- The session consumer contract.

Presentation components (login, registration and password-reset forms,
protected pages) talk to auth only through AuthContext. It exposes the
current user, the in-flight/error status of the last operation, the derived
role flags, and the four operations.

There is no module-level instance. The application root builds exactly one
context, either with create_auth_context() or inside auth_lifespan(), and
passes it down by reference.

Guards for protected pages, checked in priority order:
  try_get_user()   -- the soft variant, returns None when signed out.
  require_user()   -- raises AuthenticationRequired when signed out.
  require_admin()  -- require_user(), then raises AdminRequired for non-admins.

Every read goes through SessionManager.current_session(), so an expired token
is noticed (and the session cleared) at the moment a page asks, not later.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from auth.errors import AdminRequired, AuthenticationRequired
from auth.models import ROLE_ADMIN, ROLE_USER, AuthState, PublicUser
from auth.schemas import ForgotPasswordResponse, LoginResponse, RegisterRequest, RegisterResponse
from auth.session import Listener, SessionManager
from auth.store import CredentialStore
from core.config import Settings, configure_logging, get_settings

logger = logging.getLogger("careercompass.auth")

ADMIN_LANDING_PATH = "/admin-dashboard"
USER_LANDING_PATH = "/student-dashboard"
LOGIN_PATH = "/login"


class AuthContext:
    """Read-mostly facade over one SessionManager."""

    def __init__(self, manager: SessionManager) -> None:
        self._manager = manager

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_user(self) -> PublicUser | None:
        return self._manager.current_user

    @property
    def state(self) -> AuthState:
        return self._manager.state

    @property
    def is_busy(self) -> bool:
        return self._manager.is_busy

    @property
    def last_error(self) -> str | None:
        return self._manager.last_error

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def is_admin(self) -> bool:
        user = self.current_user
        return user is not None and user.role == ROLE_ADMIN

    @property
    def is_user(self) -> bool:
        user = self.current_user
        return user is not None and user.role == ROLE_USER

    def landing_path(self) -> str:
        """Where to send the current user after login (or to log in)."""
        user = self.current_user
        if user is None:
            return LOGIN_PATH
        return ADMIN_LANDING_PATH if user.role == ROLE_ADMIN else USER_LANDING_PATH

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def try_get_user(self) -> PublicUser | None:
        return self.current_user

    def require_user(self) -> PublicUser:
        user = self.try_get_user()
        if user is None:
            raise AuthenticationRequired()
        return user

    def require_admin(self) -> PublicUser:
        user = self.require_user()
        if user.role != ROLE_ADMIN:
            raise AdminRequired()
        return user

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def restore(self) -> AuthState:
        return self._manager.restore()

    async def register(self, data: RegisterRequest | dict) -> RegisterResponse:
        return await self._manager.register(data)

    async def login(self, email: str, password: str) -> LoginResponse:
        return await self._manager.login(email, password)

    def logout(self) -> None:
        self._manager.logout()

    async def forgot_password(self, email: str) -> ForgotPasswordResponse:
        return await self._manager.forgot_password(email)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._manager.subscribe(listener)


def create_auth_context(settings: Settings | None = None, store: CredentialStore | None = None) -> AuthContext:
    """Build the application's AuthContext. Call once, at the application root.

    restore() is not run here; auth_lifespan() does both.
    """
    settings = settings or get_settings()
    store = store or CredentialStore(settings.auth_db_url)
    manager = SessionManager(store, latency_seconds=settings.simulated_latency_seconds)
    return AuthContext(manager)


@asynccontextmanager
async def auth_lifespan(settings: Settings | None = None) -> AsyncIterator[AuthContext]:
    """Build the context, restore any persisted session, and close storage on exit.

    Usage:
        async with auth_lifespan() as auth:
            await auth.login(email, password)
    """
    settings = settings or get_settings()
    configure_logging(settings)
    store = CredentialStore(settings.auth_db_url)
    context = create_auth_context(settings, store=store)
    logger.info("Auth context starting up (state after restore: %s)", context.restore().value)
    try:
        yield context
    finally:
        store.close()
        logger.info("Auth context shutdown complete")

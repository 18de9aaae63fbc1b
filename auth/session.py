"""
auth/session.py -- The session manager: who is logged in, and how that changes.

State machine:
  unknown --restore()--> anonymous | authenticated
  anonymous --login()--> authenticated
  authenticated --logout() / token expiry--> anonymous

  "Restoring" and "authenticating" are reported through is_busy, not as
  states. restore() always settles, even when storage is broken.

Ordering rule for every mutation: write the store first, then change memory.
If the write raises, memory still matches what is on disk.

Concurrency:
  One manager per application root, driven from a single event loop. The
  async operations yield while they wait out the simulated server latency,
  so a double-submit can interleave two operations. Nothing serializes them:
  the store is last-write-wins and the consumer is expected to disable
  submission while is_busy is true. There is no cancellation; an operation
  that has started always settles.

Expiry is lazy. No timer evicts a session; every read of the current session
re-checks the token and signs out if it has lapsed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from auth.admin import is_admin_email, match_admin
from auth.errors import AuthError, DuplicateEmail, InvalidCredentials, StoreWriteFailure, UnknownAccount
from auth.models import ROLE_USER, AuthState, PublicUser, Session, UserRecord
from auth.schemas import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    parse_request,
)
from auth.store import CredentialStore
from auth.tokens import encode_session_token, is_live, store_password, verify_password
from core.config import get_settings

logger = logging.getLogger("careercompass.auth")

Listener = Callable[["SessionManager"], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_user_id(position: int) -> str:
    """Build a user id from the current millisecond and the directory position.

    Position grows with every append, so two registrations in one process
    cannot share an id even within the same millisecond. Two processes
    appending to the same store in the same millisecond still can; the store
    is last-write-wins there anyway and one of the two records is lost.
    """
    return f"user_{time.time_ns() // 1_000_000}_{position}"


def _to_public(record: UserRecord) -> PublicUser:
    return PublicUser(
        id=record.id,
        email=record.email,
        name=record.name,
        role=record.role,
        created_at=record.created_at,
    )


class SessionManager:
    """Owns the in-memory session and every operation that changes it.

    Construct one per application with an explicit store:
        manager = SessionManager(CredentialStore(settings.auth_db_url))
        manager.restore()
        await manager.login("a@b.com", "Passw0rd")
    """

    def __init__(self, store: CredentialStore, latency_seconds: float | None = None) -> None:
        self._store = store
        if latency_seconds is None:
            latency_seconds = get_settings().simulated_latency_seconds
        self._latency_seconds = latency_seconds
        self._state = AuthState.unknown
        self._session: Session | None = None
        self._in_flight = 0
        self._last_error: str | None = None
        self._listeners: list[Listener] = []
        # Why the last restore() fell back to anonymous, for diagnostics only.
        self.restore_error: str | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._in_flight > 0

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def current_session(self, now: float | None = None) -> Session | None:
        """Return the active session, signing out first if its token has expired."""
        session = self._session
        if session is None:
            return None
        if is_live(session.token, now):
            return session
        logger.info("Session for user %s expired; signing out", session.user.id)
        self._end_session()
        return None

    @property
    def current_user(self) -> PublicUser | None:
        session = self.current_session()
        return session.user if session is not None else None

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener(manager) after every change. Returns an unsubscribe function."""
        if not callable(listener):
            raise ValueError("listener must be callable")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, track_error: bool = True) -> Iterator[None]:
        """Mark an operation in flight and record its failure message."""
        self._in_flight += 1
        if track_error:
            self._last_error = None
        self._notify()
        try:
            yield
        except AuthError as exc:
            if track_error:
                self._last_error = exc.message
            raise
        finally:
            self._in_flight -= 1
            self._notify()

    async def _simulate_latency(self) -> None:
        await asyncio.sleep(self._latency_seconds)

    def _settle(self, session: Session | None) -> None:
        self._session = session
        self._state = AuthState.authenticated if session is not None else AuthState.anonymous
        self._notify()

    def _end_session(self) -> None:
        """Drop the session from storage and memory. Never raises."""
        try:
            self._store.write_session(None)
        except StoreWriteFailure:
            logger.warning("Could not clear the persisted session; it stays stored until its token expires")
        self._settle(None)

    def _match_directory(self, email: str, password: str) -> PublicUser | None:
        for record in self._store.read_directory():
            if record.email == email and verify_password(password, record.password_secret):
                return _to_public(record)
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def restore(self) -> AuthState:
        """Load the persisted session at startup. Never raises.

        A missing, partial, corrupt or expired session is cleared from storage
        and the manager settles anonymous. Any unexpected failure does the
        same, is logged, and is kept on restore_error.
        """
        with self._operation(track_error=False):
            self.restore_error = None
            try:
                session = self._store.read_session()
                if session is not None and is_live(session.token):
                    self._settle(session)
                    logger.info("Restored session for user %s", session.user.id)
                else:
                    if session is not None:
                        logger.info("Persisted session for user %s has expired; clearing it", session.user.id)
                    self._store.write_session(None)
                    self._settle(None)
            except Exception as exc:
                logger.exception("Session restore failed; continuing signed out")
                self.restore_error = getattr(exc, "message", None) or str(exc) or type(exc).__name__
                self._end_session()
        return self._state

    async def register(self, data: RegisterRequest | dict) -> RegisterResponse:
        """Add a user to the directory. Does not sign them in.

        Raises InvalidInput, DuplicateEmail, or StoreWriteFailure. On any
        failure the directory is unchanged.
        """
        with self._operation():
            request = parse_request(RegisterRequest, data)
            await self._simulate_latency()

            directory = self._store.read_directory()
            # The reserved admin email counts as taken so it never enters the directory.
            if is_admin_email(request.email) or any(r.email == request.email for r in directory):
                raise DuplicateEmail()

            record = UserRecord(
                id=_new_user_id(len(directory)),
                email=request.email,
                name=request.name,
                password_secret=store_password(request.password),
                role=ROLE_USER,
                created_at=_now_iso(),
            )
            self._store.write_directory([*directory, record])
            logger.info("Registered user %s", record.id)
            return RegisterResponse()

    async def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate against the directory, then the reserved admin credential.

        Raises InvalidCredentials (same message whether the email is unknown
        or the password is wrong), InvalidInput, or StoreWriteFailure.
        """
        with self._operation():
            request = parse_request(LoginRequest, {"email": email, "password": password})
            await self._simulate_latency()

            user = self._match_directory(request.email, request.password)
            if user is None:
                user = match_admin(request.email, request.password)
            if user is None:
                logger.debug("Login rejected")
                raise InvalidCredentials()

            session = Session(user=user, token=encode_session_token(user))
            self._store.write_session(session)
            self._settle(session)
            logger.info("Session established for user %s (%s)", user.id, user.role)
            return LoginResponse(user=user)

    def logout(self) -> None:
        """End the session. Synchronous, idempotent, and never raises."""
        had_session = self._session is not None
        self._last_error = None
        self._end_session()
        if had_session:
            logger.info("Session ended")

    async def forgot_password(self, email: str) -> ForgotPasswordResponse:
        """Acknowledge a password reset request for a known account.

        Delivery is simulated: nothing is sent and nothing is stored. Raises
        UnknownAccount for an email that is neither registered nor the admin.
        """
        with self._operation():
            request = parse_request(ForgotPasswordRequest, {"email": email})
            await self._simulate_latency()

            known = any(r.email == request.email for r in self._store.read_directory())
            if not known and not is_admin_email(request.email):
                raise UnknownAccount()
            logger.info("Password reset requested; delivery is simulated")
            return ForgotPasswordResponse()

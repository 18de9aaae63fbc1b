"""
auth/store.py -- SQLAlchemy Core persistence layer for the directory and session.

Pattern: Repository + Data Mapper. CredentialStore is the repository over a
single key/value table (the durable equivalent of browser local storage);
the _*_to_json / _json_to_* functions are the mappers. The session manager
never touches SQL or JSON directly.

Slots (stable names -- renaming one orphans every persisted session):
  session.user     JSON PublicUser
  session.token    session token string
  directory.users  JSON list of UserRecord, password secret included

Failure policy:
  Reads are fail-closed. A missing slot, unparsable JSON, a record with
  missing or non-text fields, or a database error all read as "empty directory" /
  "no session". Corruption is logged, never raised.
  Writes raise StoreWriteFailure. Each write replaces whole slots inside one
  transaction, so the two session slots are always written or removed together.

Security:
  All queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.errors import StoreReadFailure, StoreWriteFailure
from auth.models import PublicUser, Session, UserRecord
from core.config import get_settings

logger = logging.getLogger("careercompass.auth.store")

SESSION_USER_KEY = "session.user"
SESSION_TOKEN_KEY = "session.token"
DIRECTORY_KEY = "directory.users"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_slots = Table(
    "local_storage",
    _metadata,
    Column("key", String(64), primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so a reader never blocks on a concurrent write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for the user directory and the active session.

    Usage:
        store = CredentialStore()
        store.write_directory([*store.read_directory(), record])
        store.write_session(Session(user=public_user, token=token))
        session = store.read_session()   # Session or None
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().auth_db_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Raw slots
    # ------------------------------------------------------------------

    def _read_slots(self, *keys: str) -> dict[str, str]:
        """Return {key: text} for the slots that exist. Raises StoreReadFailure."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(_slots.select().where(_slots.c.key.in_(keys))).fetchall()
        except SQLAlchemyError as exc:
            raise StoreReadFailure() from exc
        return {row.key: row.value for row in rows}

    def _write_slots(self, values: dict[str, str | None]) -> None:
        """Replace each slot with its new text, or remove it for None.

        All slots change in one transaction. Raises StoreWriteFailure.
        """
        stamp = _now_iso()
        try:
            with self.engine.begin() as conn:
                conn.execute(_slots.delete().where(_slots.c.key.in_(list(values))))
                rows = [{"key": k, "value": v, "updated_at": stamp} for k, v in values.items() if v is not None]
                if rows:
                    conn.execute(_slots.insert(), rows)
        except SQLAlchemyError as exc:
            logger.error("Local storage write failed for %s", sorted(values), exc_info=True)
            raise StoreWriteFailure() from exc

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    def read_directory(self) -> list[UserRecord]:
        """Return every registered user. Empty on a missing or corrupt slot."""
        try:
            raw = self._read_slots(DIRECTORY_KEY).get(DIRECTORY_KEY)
        except StoreReadFailure:
            logger.warning("Directory read failed; treating it as empty", exc_info=True)
            return []
        if raw is None:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise TypeError(f"expected a list, got {type(items).__name__}")
            return [_json_to_record(item) for item in items]
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Directory record is corrupt (%s); treating it as empty", exc)
            return []

    def write_directory(self, records: list[UserRecord]) -> None:
        """Replace the whole directory. Raises StoreWriteFailure."""
        self._write_slots({DIRECTORY_KEY: json.dumps([_record_to_json(r) for r in records])})

    def reset_directory(self) -> None:
        """Remove every registered user. Maintenance only; not a consumer operation."""
        self._write_slots({DIRECTORY_KEY: None})

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def read_session(self) -> Session | None:
        """Return the persisted session, or None if either half is missing or corrupt.

        Token liveness is not checked here -- that is the session manager's call.
        """
        try:
            slots = self._read_slots(SESSION_USER_KEY, SESSION_TOKEN_KEY)
        except StoreReadFailure:
            logger.warning("Session read failed; treating it as absent", exc_info=True)
            return None
        raw_user = slots.get(SESSION_USER_KEY)
        token = slots.get(SESSION_TOKEN_KEY)
        if raw_user is None or not token:
            return None
        try:
            user = _json_to_public_user(json.loads(raw_user))
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Session user record is corrupt (%s); treating session as absent", exc)
            return None
        return Session(user=user, token=token)

    def write_session(self, session: Session | None) -> None:
        """Persist session as the active one, or remove both slots for None.

        Raises StoreWriteFailure.
        """
        if session is None:
            self._write_slots({SESSION_USER_KEY: None, SESSION_TOKEN_KEY: None})
            return
        self._write_slots(
            {
                SESSION_USER_KEY: json.dumps(_public_user_to_json(session.user)),
                SESSION_TOKEN_KEY: session.token,
            }
        )

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# JSON mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _public_user_to_json(user: PublicUser) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "createdAt": user.created_at,
    }


def _text(data: dict, key: str, default: str | None = None) -> str:
    """Return data[key] if it is a string. Raises KeyError if absent, TypeError if not text."""
    value = data[key] if default is None else data.get(key, default)
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {type(value).__name__}")
    return value


def _json_to_public_user(data: dict) -> PublicUser:
    return PublicUser(
        id=_text(data, "id"),
        email=_text(data, "email"),
        name=_text(data, "name"),
        role=_text(data, "role"),
        created_at=_text(data, "createdAt", ""),
    )


def _record_to_json(record: UserRecord) -> dict:
    return {
        "id": record.id,
        "email": record.email,
        "name": record.name,
        "passwordSecret": record.password_secret,
        "role": record.role,
        "createdAt": record.created_at,
    }


def _json_to_record(data: dict) -> UserRecord:
    return UserRecord(
        id=_text(data, "id"),
        email=_text(data, "email"),
        name=_text(data, "name"),
        password_secret=_text(data, "passwordSecret"),
        role=_text(data, "role"),
        created_at=_text(data, "createdAt", ""),
    )

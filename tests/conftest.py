"""
tests/conftest.py -- Shared test fixtures for the auth package.

This module provides:
  - store: CredentialStore over a private in-memory SQLite database
  - manager: SessionManager over that store with zero simulated latency
  - auth: AuthContext wrapping the manager
  - public_user: a ready-made PublicUser for codec and store tests

Each test gets a fresh in-memory database. Plain ':memory:' is safe here
because every test drives the store from a single thread (the event loop);
tests that need durability across "reloads" use a file under tmp_path.

The latency env var is set before any auth import so that anything falling
back to get_settings() does not sleep for a second per operation.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# Set before auth/core imports so get_settings() never picks up a real delay.
os.environ.setdefault("SIMULATED_LATENCY_SECONDS", "0")
os.environ.setdefault("AUTH_DB_URL", "sqlite:///:memory:")

import pytest

from auth.context import AuthContext
from auth.models import ROLE_USER, PublicUser
from auth.session import SessionManager
from auth.store import CredentialStore


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def manager(store: CredentialStore) -> SessionManager:
    return SessionManager(store, latency_seconds=0)


@pytest.fixture
def auth(manager: SessionManager) -> AuthContext:
    return AuthContext(manager)


@pytest.fixture
def public_user() -> PublicUser:
    return PublicUser(
        id="user_1700000000000_0",
        email="a@b.com",
        name="A B",
        role=ROLE_USER,
        created_at="2024-01-01T00:00:00+00:00",
    )

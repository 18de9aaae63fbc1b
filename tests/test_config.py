"""Unit tests for core/config.py -- settings loading and validation.

Covers:
- Defaults when no environment or .env is present
- Environment overrides through get_settings() (and its cache)
- Rejection of a negative latency and of unknown log levels
- DEBUG lowers the default log level
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SIMULATED_LATENCY_SECONDS", "AUTH_DB_URL", "LOG_LEVEL", "DEBUG"):
        monkeypatch.delenv(name, raising=False)


def test_defaults(clean_env: None) -> None:
    settings = Settings(_env_file=None)
    assert settings.debug is False
    assert settings.simulated_latency_seconds == 1.0
    assert settings.log_level == "INFO"
    assert settings.auth_db_url.startswith("sqlite:///")
    assert settings.auth_db_url.endswith("careercompass_auth.db")


def test_environment_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIMULATED_LATENCY_SECONDS", "0.25")
    monkeypatch.setenv("AUTH_DB_URL", "sqlite:///:memory:")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.simulated_latency_seconds == 0.25
        assert settings.auth_db_url == "sqlite:///:memory:"
        assert get_settings() is settings
    finally:
        get_settings.cache_clear()


def test_negative_latency_rejected() -> None:
    with pytest.raises(ValidationError, match="SIMULATED_LATENCY_SECONDS"):
        Settings(_env_file=None, simulated_latency_seconds=-1)


def test_log_level_normalized() -> None:
    assert Settings(_env_file=None, log_level="warning").log_level == "WARNING"


def test_unknown_log_level_rejected() -> None:
    with pytest.raises(ValidationError, match="LOG_LEVEL"):
        Settings(_env_file=None, log_level="LOUD")


def test_debug_lowers_default_log_level(clean_env: None) -> None:
    assert Settings(_env_file=None, debug=True).log_level == "DEBUG"
    assert Settings(_env_file=None, debug=True, log_level="ERROR").log_level == "ERROR"

"""Settings tests — environment parsing and validation."""

import pytest
from pydantic import ValidationError

from shiftledger.config import Settings


def test_postgres_url_gets_asyncpg_driver(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@host:5432/ledger")
    assert Settings().database_url == "postgresql+asyncpg://u:p@host:5432/ledger"


def test_poller_settings_from_environment(monkeypatch):
    monkeypatch.setenv("POLLER_ENABLED", "true")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "5")
    monkeypatch.setenv("TICK_CONCURRENCY", "8")
    settings = Settings()
    assert settings.poller_enabled is True
    assert settings.poll_interval_seconds == 5.0
    assert settings.tick_concurrency == 8


def test_non_positive_interval_rejected(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_unknown_timezone_rejected(monkeypatch):
    monkeypatch.setenv("FACILITY_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ValidationError):
        Settings()


def test_facility_tz_resolves_zone(monkeypatch):
    monkeypatch.setenv("FACILITY_TIMEZONE", "Europe/Lisbon")
    assert Settings().facility_tz.key == "Europe/Lisbon"

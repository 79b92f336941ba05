from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from station_access.settings import Settings, get_settings, reload_settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.freshness_window == timedelta(seconds=120)
    assert settings.freshness_window_seconds == 120.0
    assert settings.stations_active_only is True
    assert settings.module_access_enabled is True
    assert settings.backend == "memory"
    assert settings.database_dsn.startswith("sqlite+aiosqlite:///")
    assert settings.rest_timeout == timedelta(seconds=10)
    assert settings.stations_table == "stations"
    assert settings.module_access_table == "module_access"
    assert settings.logging_level == "INFO"


@pytest.mark.parametrize(
    ("raw", "seconds"),
    [(90, 90), ("45", 45), ("90s", 90), ("2m", 120), ("1h", 3600), ("1d", 86400)],
)
def test_duration_parsing(raw, seconds) -> None:
    assert Settings(_env_file=None, freshness_window=raw).freshness_window_seconds == seconds


@pytest.mark.parametrize("raw", [0, -5, "", "soon", "5w", True])
def test_invalid_durations_are_rejected(raw) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, freshness_window=raw)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATION_ACCESS_FRESHNESS_WINDOW", "5m")
    monkeypatch.setenv("STATION_ACCESS_MODULE_ACCESS_ENABLED", "false")
    monkeypatch.setenv("STATION_ACCESS_LOGGING_LEVEL", "debug")

    settings = reload_settings()

    assert settings.freshness_window_seconds == 300
    assert settings.module_access_enabled is False
    assert settings.logging_level == "DEBUG"
    assert get_settings() is settings


def test_rest_backend_requires_url() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, backend="rest")

    settings = Settings(
        _env_file=None,
        backend="rest",
        rest_url="https://example.supabase.co/",
        rest_api_key="secret",
    )
    assert settings.rest_url == "https://example.supabase.co"
    assert settings.rest_api_key_value == "secret"
    assert "secret" not in repr(settings)


def test_unknown_logging_level_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, logging_level="chatty")

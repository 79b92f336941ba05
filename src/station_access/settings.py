"""station-access settings (conventional Pydantic v2)."""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---- Defaults ---------------------------------------------------------------

DEFAULT_FRESHNESS_WINDOW = timedelta(seconds=120)
DEFAULT_REST_TIMEOUT = timedelta(seconds=10)
DEFAULT_DATABASE_DSN = "sqlite+aiosqlite:///./data/station_access.sqlite"
DEFAULT_STATIONS_TABLE = "stations"
DEFAULT_MODULE_ACCESS_TABLE = "module_access"

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


# ---- Helpers ----------------------------------------------------------------

def _parse_duration(value: Any, *, field_name: str) -> timedelta:
    """Accept seconds (int/float/str) or '60s'/'5m'/'1h'/'14d'."""
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool):
        raise ValueError(f"{field_name} must be number, duration string, or timedelta")
    elif isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError(f"{field_name} must not be blank")
        try:
            seconds = float(s)  # plain seconds
        except ValueError:
            unit = s[-1].lower()
            num = s[:-1].strip()
            if unit not in _UNIT_SECONDS or not num:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from None
            try:
                seconds = float(num) * _UNIT_SECONDS[unit]
            except ValueError as exc:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from exc
    else:
        raise ValueError(f"{field_name} must be number, duration string, or timedelta")
    if seconds <= 0:
        raise ValueError(f"{field_name} must be > 0 seconds")
    return timedelta(seconds=seconds)


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """Runtime configuration for the station directory and module registry."""

    model_config = SettingsConfigDict(
        env_prefix="STATION_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    # Caching
    freshness_window: timedelta = Field(default=DEFAULT_FRESHNESS_WINDOW)
    stations_active_only: bool = True
    module_access_enabled: bool = True

    # Backend selection
    backend: Literal["memory", "sql", "rest"] = "memory"
    database_dsn: str = Field(default=DEFAULT_DATABASE_DSN)
    rest_url: str | None = None
    rest_api_key: SecretStr | None = None
    rest_timeout: timedelta = Field(default=DEFAULT_REST_TIMEOUT)
    stations_table: str = Field(default=DEFAULT_STATIONS_TABLE, min_length=1)
    module_access_table: str = Field(default=DEFAULT_MODULE_ACCESS_TABLE, min_length=1)

    # Logging
    logging_level: str = "INFO"

    # ---- Validators ----

    @field_validator("freshness_window", "rest_timeout", mode="before")
    @classmethod
    def _v_durations(cls, v: Any, info: ValidationInfo) -> timedelta:
        return _parse_duration(v, field_name=info.field_name)

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        level = str(v or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown logging level: {v!r}")
        return level

    @field_validator("rest_url", mode="before")
    @classmethod
    def _v_rest_url(cls, v: Any) -> str | None:
        if v in (None, ""):
            return None
        return str(v).strip().rstrip("/")

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        if self.backend == "rest" and not self.rest_url:
            raise ValueError("STATION_ACCESS_REST_URL is required when backend is 'rest'")
        return self

    # ---- Convenience ----

    @property
    def freshness_window_seconds(self) -> float:
        return self.freshness_window.total_seconds()

    @property
    def rest_api_key_value(self) -> str | None:
        return self.rest_api_key.get_secret_value() if self.rest_api_key else None


@lru_cache(maxsize=1)
def _build_settings() -> Settings:
    return Settings()


def get_settings() -> Settings:
    return _build_settings()


def reload_settings() -> Settings:
    _build_settings.cache_clear()
    return _build_settings()


__all__ = [
    "DEFAULT_FRESHNESS_WINDOW",
    "Settings",
    "get_settings",
    "reload_settings",
]

"""Console logging for station-access.

Records are rendered as one line each::

    2026-10-16T09:12:44.018Z INFO  station_access.stations.directory [cid=-] station_directory.load.success count=3

Event names are dotted (``<store>.<operation>.<outcome>``) and everything else
travels as ``extra`` fields built with :func:`log_context`. The correlation ID
is bound by the host around one consumer session so that station and module
events from that session can be grepped together.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from station_access.settings import Settings

_CORRELATION_ID: ContextVar[str | None] = ContextVar(
    "station_access_correlation_id",
    default=None,
)

# Anything a bare LogRecord already carries is part of the base line, not an extra.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "correlation_id", "taskName"}

# Libraries whose records should reach our handler rather than their own.
_PROPAGATED_LOGGERS = ("sqlalchemy", "httpx", "httpcore")

_CONFIGURED_FLAG = "_station_access_configured"


class ConsoleLogFormatter(logging.Formatter):
    """UTC timestamp, level, logger, correlation ID, event, then ``key=value`` extras."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC).strftime(datefmt or self.datefmt)
        return f"{stamp}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or _CORRELATION_ID.get() or "-"
        )
        line = super().format(record)
        extras = " ".join(
            f"{key}={'null' if value is None else value}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return f"{line} {extras}" if extras else line


def setup_logging(settings: Settings) -> None:
    """Install the console handler on the root logger.

    The level comes from ``STATION_ACCESS_LOGGING_LEVEL``. Calling this again
    only changes the level.
    """

    root = logging.getLogger()
    level = getattr(logging, settings.logging_level.upper(), logging.INFO)
    root.setLevel(level)
    if getattr(root, _CONFIGURED_FLAG, False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleLogFormatter())
    root.handlers = [handler]
    for name in _PROPAGATED_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers.clear()
        library_logger.propagate = True
    setattr(root, _CONFIGURED_FLAG, True)


def bind_correlation_id(correlation_id: str | None) -> None:
    _CORRELATION_ID.set(correlation_id)


def clear_correlation_id() -> None:
    _CORRELATION_ID.set(None)


def current_correlation_id() -> str | None:
    return _CORRELATION_ID.get()


def log_context(
    *,
    station_id: Any = None,
    station_name: str | None = None,
    module_key: str | None = None,
    role: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the ``extra`` payload for a station-access event.

    The station and module identifiers are dropped when unset so that lines
    for unrelated events stay short; other keys are passed through as given.
    """

    ctx = {
        key: value
        for key, value in (
            ("station_id", station_id),
            ("station_name", station_name),
            ("module_key", module_key),
            ("role", role),
        )
        if value is not None
    }
    ctx.update(extra)
    return ctx


__all__ = [
    "ConsoleLogFormatter",
    "bind_correlation_id",
    "clear_correlation_id",
    "current_correlation_id",
    "log_context",
    "setup_logging",
]

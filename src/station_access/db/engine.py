"""Async engine construction for the SQL backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from station_access.common.logging import log_context
from station_access.settings import Settings

from .tables import metadata

logger = logging.getLogger(__name__)


def is_sqlite_memory_url(url: URL) -> bool:
    database = (url.database or "").strip()
    if not database or database == ":memory:":
        return True
    if database.startswith("file:"):
        query = dict(url.query or {})
        if query.get("mode") == "memory":
            return True
    return False


def ensure_sqlite_database_directory(url: URL) -> None:
    """Ensure a filesystem-backed SQLite database can be created."""

    database = (url.database or "").strip()
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    path = Path(database)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)


def create_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_dsn)
    engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        engine_kwargs["poolclass"] = StaticPool
        if not is_sqlite_memory_url(url):
            ensure_sqlite_database_directory(url)

    engine = create_async_engine(url.render_as_string(hide_password=False), **engine_kwargs)

    if url.get_backend_name() == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA busy_timeout=30000")
            finally:
                cursor.close()

    logger.debug(
        "db.engine.created",
        extra=log_context(dialect=url.get_backend_name()),
    )
    return engine


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create any missing tables registered on the shared metadata."""

    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)


__all__ = [
    "create_engine",
    "ensure_schema",
    "ensure_sqlite_database_directory",
    "is_sqlite_memory_url",
]

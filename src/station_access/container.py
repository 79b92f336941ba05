"""Application-scoped wiring of the shared stores.

``AccessControl`` owns exactly one :class:`StationDirectory` and one
:class:`ModuleAccessRegistry`; views handed out by :meth:`AccessControl.view`
share them, so a write through any view is seen by all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from station_access.backends.base import TableBackend
from station_access.backends.memory import InMemoryTableBackend
from station_access.backends.rest import RestTableBackend, build_rest_client
from station_access.backends.sql import SqlTableBackend
from station_access.common.logging import log_context
from station_access.consumers.access_view import Profile, StationAccessView
from station_access.db.engine import create_engine, ensure_schema
from station_access.db.tables import build_module_access_table, build_stations_table
from station_access.module_access.service import ModuleAccessRegistry
from station_access.settings import Settings, get_settings
from station_access.stations.directory import StationDirectory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Backends:
    """Table backends plus the resources that must be closed with them."""

    stations: TableBackend
    modules: TableBackend
    engine: AsyncEngine | None = None
    client: httpx.AsyncClient | None = None


def build_backends(settings: Settings) -> Backends:
    """Create the table backends selected by ``settings.backend``."""

    if settings.backend == "sql":
        engine = create_engine(settings)
        return Backends(
            stations=SqlTableBackend(engine, build_stations_table(settings.stations_table)),
            modules=SqlTableBackend(
                engine, build_module_access_table(settings.module_access_table)
            ),
            engine=engine,
        )
    if settings.backend == "rest":
        client = build_rest_client(settings)
        return Backends(
            stations=RestTableBackend(client, settings.stations_table),
            modules=RestTableBackend(client, settings.module_access_table),
            client=client,
        )
    return Backends(
        stations=InMemoryTableBackend(settings.stations_table),
        modules=InMemoryTableBackend(settings.module_access_table),
    )


class AccessControl:
    """Container for the application-wide station directory and module registry."""

    def __init__(
        self,
        directory: StationDirectory,
        registry: ModuleAccessRegistry,
        *,
        settings: Settings,
        engine: AsyncEngine | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.directory = directory
        self.registry = registry
        self.settings = settings
        self._engine = engine
        self._client = client

    def view(self, profile: Profile = None) -> StationAccessView:
        return StationAccessView(self.directory, self.registry, profile)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        logger.debug("access_control.closed")

    async def __aenter__(self) -> AccessControl:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def create_access_control(
    settings: Settings | None = None,
    *,
    stations_backend: TableBackend | None = None,
    modules_backend: TableBackend | None = None,
) -> AccessControl:
    """Build the shared stores, creating backends from ``settings`` when not given."""

    settings = settings or get_settings()
    engine: AsyncEngine | None = None
    client: httpx.AsyncClient | None = None

    if stations_backend is None or modules_backend is None:
        backends = build_backends(settings)
        engine = backends.engine
        client = backends.client
        stations_backend = stations_backend or backends.stations
        modules_backend = modules_backend or backends.modules
        if engine is not None:
            await ensure_schema(engine)

    logger.info(
        "access_control.created",
        extra=log_context(
            backend=settings.backend,
            module_access_enabled=settings.module_access_enabled,
        ),
    )
    return AccessControl(
        StationDirectory(stations_backend, settings=settings),
        ModuleAccessRegistry(modules_backend, settings=settings),
        settings=settings,
        engine=engine,
        client=client,
    )


__all__ = [
    "AccessControl",
    "Backends",
    "build_backends",
    "create_access_control",
]

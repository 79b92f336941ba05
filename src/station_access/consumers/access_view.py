"""Per-user view over the shared station directory and module registry.

A view binds one user profile to the two application-wide stores. It never
caches answers: every call re-normalizes the profile and re-projects it over
the stores' current state, so a change in either store is visible on the next
read. Subscribers registered on the view are told after each store
transition.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from station_access.access.filters import RecordFilter, station_record_filters
from station_access.access.normalizer import (
    NormalizedContext,
    UserAccessContext,
    normalize_profile,
)
from station_access.access.projector import (
    CapabilityProjection,
    accessible_station_names,
    project,
    station_options,
)
from station_access.common.logging import log_context
from station_access.common.observers import SubscriberRegistry, Unsubscribe
from station_access.module_access.schemas import ModuleActions
from station_access.module_access.service import ModuleAccessRegistry
from station_access.stations.directory import StationDirectory
from station_access.stations.schemas import StationOption

logger = logging.getLogger(__name__)

Profile = UserAccessContext | NormalizedContext | Mapping[str, Any] | None


class StationAccessView:
    """Answers station and module questions for one user."""

    def __init__(
        self,
        directory: StationDirectory,
        registry: ModuleAccessRegistry,
        profile: Profile = None,
    ) -> None:
        self._directory = directory
        self._registry = registry
        self._profile = profile
        self._subscribers: SubscriberRegistry[StationAccessView] = SubscriberRegistry(
            "station_access_view"
        )
        self._unsubscribers: list[Unsubscribe] = []

    async def __aenter__(self) -> StationAccessView:
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def mounted(self) -> bool:
        return bool(self._unsubscribers)

    async def mount(self) -> None:
        """Subscribe to both stores and load whichever is stale."""

        if not self._unsubscribers:
            self._unsubscribers = [
                self._directory.subscribe(lambda _state: self._store_changed()),
                self._registry.subscribe(lambda _state: self._store_changed()),
            ]
        await asyncio.gather(self._directory.load(), self._registry.load())

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def subscribe(self, on_change: Callable[[StationAccessView], None]) -> Unsubscribe:
        return self._subscribers.subscribe(on_change)

    def _store_changed(self) -> None:
        self._subscribers.notify(self)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    @property
    def context(self) -> NormalizedContext:
        return normalize_profile(self._profile)

    def set_profile(self, profile: Profile) -> None:
        self._profile = profile
        ctx = self.context
        logger.debug(
            "station_access_view.profile.changed",
            extra=log_context(role=ctx.role.value),
        )
        self._subscribers.notify(self)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self._directory.state.loading or self._registry.state.loading

    @property
    def error(self) -> str | None:
        return self._directory.state.error or self._registry.state.error

    def get_resource_options(self, include_aggregate: bool = True) -> list[StationOption]:
        return station_options(
            self.context,
            self._directory.stations,
            include_all=include_aggregate,
        )

    def get_accessible_resource_names(self) -> list[str]:
        return accessible_station_names(self.context, self._directory.stations)

    def can_perform(self, module_key: str, action: str) -> bool:
        return self._registry.can_perform(module_key, action)

    def actions_for(self, module_key: str) -> ModuleActions:
        return self._registry.actions_for(module_key)

    def projection(self, module_key: str | None = None) -> CapabilityProjection:
        registry_state = self._registry.state
        return project(
            self.context,
            self._directory.stations,
            module_key,
            registry_state.modules,
            registry_enabled=registry_state.enabled,
        )

    def record_filters(
        self,
        selected: str | None,
        *,
        field: str = "station",
    ) -> list[RecordFilter] | None:
        return station_record_filters(
            selected,
            self.get_accessible_resource_names(),
            field=field,
        )


__all__ = ["Profile", "StationAccessView"]

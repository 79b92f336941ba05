"""Process-wide station directory with freshness caching and change fan-out.

One :class:`StationDirectory` is owned per application instance and shared by
every consumer. It is the only writer of the station list: consumers read
:attr:`StationDirectory.state` and subscribe for changes, and all mutations go
through :meth:`add`, :meth:`update` and :meth:`remove`, each of which ends in a
forced reload so that the caller resumes only after every subscriber has seen
the new directory.

Loads are coalesced: while one backend read is in flight, further ``load()``
calls return immediately and observe the outcome through the next
notification.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from station_access.backends.base import DeleteResult, RowResult, TableBackend, call_backend
from station_access.common.logging import log_context
from station_access.common.results import OperationResult
from station_access.common.status import LoadStatus
from station_access.common.store import CachedTableStore, Clock, validation_message
from station_access.settings import Settings

from .schemas import Station, StationCreate, StationId, StationUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DirectoryState:
    """Immutable snapshot handed to subscribers."""

    stations: tuple[Station, ...] = ()
    status: LoadStatus = LoadStatus.EMPTY
    error: str | None = None
    last_updated: float | None = None

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.LOADING


class StationDirectory(CachedTableStore[DirectoryState, Station]):
    """Single source of truth for the station list."""

    event_prefix = "station_directory"
    items_field = "stations"
    item_model = Station

    def __init__(
        self,
        backend: TableBackend,
        *,
        settings: Settings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(backend, DirectoryState(), settings=settings, clock=clock)
        self._reserved_names: set[str] = set()

    @property
    def stations(self) -> tuple[Station, ...]:
        return self._state.stations

    def station_names(self) -> list[str]:
        return [station.name for station in self._state.stations]

    def get_station(self, station_id: StationId) -> Station | None:
        # Ids from form data arrive as strings; backends assign integers.
        wanted = str(station_id)
        for station in self._state.stations:
            if str(station.id) == wanted:
                return station
        return None

    def get_station_by_name(self, name: str) -> Station | None:
        for station in self._state.stations:
            if station.name == name:
                return station
        return None

    def _list_filters(self) -> Mapping[str, Any] | None:
        if self._settings.stations_active_only:
            return {"status": "active"}
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, data: StationCreate | Mapping[str, Any]) -> OperationResult:
        try:
            payload = (
                data if isinstance(data, StationCreate) else StationCreate.model_validate(data)
            )
        except ValidationError as exc:
            return OperationResult.fail(validation_message(exc, "Invalid station"))

        load_error = await self._ensure_loaded()
        if load_error:
            return self._write_failed("add", load_error, station_name=payload.name)
        if self._name_taken(payload.name):
            return self._reject_duplicate(payload.name, operation="add")

        key = payload.name.casefold()
        self._reserved_names.add(key)
        try:
            result = await call_backend(
                self._backend.insert(payload.to_row()),
                lambda error: RowResult(error=error),
                operation="insert",
                table=self._backend.name,
            )
        finally:
            self._reserved_names.discard(key)

        if result.error:
            return self._write_failed("add", result.error, station_name=payload.name)

        await self._refresh_after_write()
        logger.info(
            "station_directory.add.success",
            extra=log_context(
                station_id=(result.row or {}).get("id"),
                station_name=payload.name,
            ),
        )
        return OperationResult.ok()

    async def update(
        self,
        station: StationUpdate | Station | Mapping[str, Any],
    ) -> OperationResult:
        """Write the fields present in ``station`` onto the cached row.

        A :class:`Station` contributes only the fields that were explicitly set
        on it, so ``current.model_copy(update={"color": None})`` clears the
        colour and leaves everything else alone.
        """

        try:
            if isinstance(station, StationUpdate):
                patch = station
            elif isinstance(station, Station):
                patch = StationUpdate.from_station(station)
            else:
                patch = StationUpdate.model_validate(station)
        except ValidationError as exc:
            return OperationResult.fail(validation_message(exc, "Invalid station"))

        load_error = await self._ensure_loaded()
        if load_error:
            return self._write_failed("update", load_error, station_id=patch.id)
        current = self.get_station(patch.id)
        if current is None:
            return OperationResult.fail(f"Station {patch.id!r} not found")

        changes = {
            field: value
            for field, value in patch.changes().items()
            if getattr(current, field) != value
        }
        if not changes:
            logger.debug(
                "station_directory.update.noop",
                extra=log_context(station_id=current.id),
            )
            return OperationResult.ok()

        name = changes.get("name", current.name)
        if "name" in changes and self._name_taken(name, exclude_id=current.id):
            return self._reject_duplicate(name, operation="update")

        key = name.casefold()
        self._reserved_names.add(key)
        try:
            result = await call_backend(
                self._backend.update(current.id, changes),
                lambda error: RowResult(error=error),
                operation="update",
                table=self._backend.name,
            )
        finally:
            self._reserved_names.discard(key)

        if result.error:
            return self._write_failed(
                "update", result.error, station_id=current.id, station_name=name
            )

        await self._refresh_after_write()
        logger.info(
            "station_directory.update.success",
            extra=log_context(station_id=current.id, station_name=name, fields=sorted(changes)),
        )
        return OperationResult.ok()

    async def remove(self, station_id: StationId) -> OperationResult:
        load_error = await self._ensure_loaded()
        if load_error:
            return self._write_failed("remove", load_error, station_id=station_id)
        current = self.get_station(station_id)
        if current is None:
            return OperationResult.fail(f"Station {station_id!r} not found")
        station_id = current.id

        result = await call_backend(
            self._backend.delete(station_id),
            lambda error: DeleteResult(error=error),
            operation="delete",
            table=self._backend.name,
        )
        if result.error:
            return self._write_failed("remove", result.error, station_id=station_id)

        await self._refresh_after_write()
        logger.info(
            "station_directory.remove.success",
            extra=log_context(station_id=station_id),
        )
        return OperationResult.ok()

    def _name_taken(self, name: str, *, exclude_id: StationId | None = None) -> bool:
        key = name.casefold()
        if key in self._reserved_names:
            return True
        return any(
            station.name.casefold() == key and station.id != exclude_id
            for station in self._state.stations
        )

    def _reject_duplicate(self, name: str, *, operation: str) -> OperationResult:
        logger.info(
            f"station_directory.{operation}.duplicate",
            extra=log_context(station_name=name),
        )
        return OperationResult.fail(f'Station "{name}" already exists')

    def _write_failed(self, operation: str, error: str, **context: Any) -> OperationResult:
        logger.warning(
            f"station_directory.{operation}.error",
            extra=log_context(error=error, **context),
        )
        return OperationResult.fail(error)


__all__ = ["DirectoryState", "StationDirectory"]

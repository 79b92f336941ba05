"""Shared loading machinery for the cached backend tables.

Both the station directory and the module access registry hold one backend
table in memory, refresh it at most once per freshness window, coalesce
concurrent loads and publish every state change to their subscribers. The
table-specific parts (row parsing, list filters, the state type) are supplied
by subclasses.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from station_access.backends.base import ListResult, TableBackend, call_backend
from station_access.common.logging import log_context
from station_access.common.observers import SubscriberRegistry, Unsubscribe
from station_access.common.status import LoadStatus
from station_access.settings import Settings, get_settings

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
ItemT = TypeVar("ItemT", bound=BaseModel)

Clock = Callable[[], float]


class CachedTableStore(Generic[StateT, ItemT]):
    """Coalesced, freshness-aware loader for one backend table.

    ``StateT`` must be a frozen dataclass with ``status``, ``error`` and
    ``last_updated`` fields plus a tuple field named by ``items_field``.
    """

    event_prefix: ClassVar[str]
    items_field: ClassVar[str]
    item_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        backend: TableBackend,
        initial: StateT,
        *,
        settings: Settings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._backend = backend
        self._settings = settings or get_settings()
        self._clock = clock
        self._state = initial
        self._subscribers: SubscriberRegistry[StateT] = SubscriberRegistry(self.event_prefix)
        self._inflight: asyncio.Event | None = None

    @property
    def state(self) -> StateT:
        return self._state

    @property
    def backend(self) -> TableBackend:
        return self._backend

    def _items(self) -> tuple[ItemT, ...]:
        return getattr(self._state, self.items_field)

    @property
    def is_fresh(self) -> bool:
        last_updated = self._state.last_updated
        if not self._items() or last_updated is None:
            return False
        return self._clock() - last_updated < self._settings.freshness_window_seconds

    def subscribe(self, callback: Callable[[StateT], None]) -> Unsubscribe:
        return self._subscribers.subscribe(callback)

    def _list_filters(self) -> Mapping[str, Any] | None:
        return None

    async def load(self, force_refresh: bool = False) -> None:
        """Refresh from the backend unless a load is running or the data is fresh."""

        if self._inflight is not None:
            logger.debug(
                "store.load.coalesced",
                extra=log_context(store=self.event_prefix),
            )
            return
        if not force_refresh and self.is_fresh:
            return
        await self._fetch()

    async def _fetch(self) -> None:
        done = asyncio.Event()
        self._inflight = done
        try:
            self._transition(status=LoadStatus.LOADING)
            result = await call_backend(
                self._backend.list(self._list_filters()),
                lambda error: ListResult(error=error),
                operation="list",
                table=self._backend.name,
            )
            if result.error:
                logger.warning(
                    f"{self.event_prefix}.load.error",
                    extra=log_context(error=result.error, stale_count=len(self._items())),
                )
                self._transition(status=LoadStatus.ERROR, error=result.error)
                return

            items = self._parse_rows(result.rows)
            now = self._clock()
            previous = self._state.last_updated
            self._transition(
                **{self.items_field: items},
                status=LoadStatus.READY,
                error=None,
                last_updated=now if previous is None else max(previous, now),
            )
            logger.info(
                f"{self.event_prefix}.load.success",
                extra=log_context(count=len(items)),
            )
        finally:
            self._inflight = None
            done.set()

    def _parse_rows(self, rows: list[dict[str, Any]]) -> tuple[ItemT, ...]:
        items: list[ItemT] = []
        for row in rows:
            try:
                items.append(self.item_model.model_validate(row))
            except ValidationError as exc:
                logger.warning(
                    f"{self.event_prefix}.load.invalid_row",
                    extra=log_context(row_id=row.get("id"), error_count=exc.error_count()),
                )
        return tuple(items)

    async def _settle(self) -> None:
        while self._inflight is not None:
            await self._inflight.wait()

    def _never_loaded(self) -> bool:
        status = self._state.status
        return status is LoadStatus.EMPTY or (status is LoadStatus.ERROR and not self._items())

    async def _ensure_loaded(self) -> str | None:
        """Read the table before a write if it has never been read successfully.

        Returns the load error when there is still nothing to validate the
        write against; the caller must not touch the backend in that case.
        """

        await self._settle()
        if self._never_loaded():
            await self.load()
            await self._settle()
        if self._never_loaded():
            return self._state.error or f"{self.event_prefix} could not be loaded"
        return None

    async def _refresh_after_write(self) -> None:
        # A load that started before the write may not include it.
        await self._settle()
        await self._fetch()

    def _transition(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self._subscribers.notify(self._state)


def validation_message(exc: ValidationError, prefix: str) -> str:
    """Summarise the first validation error as ``"<prefix>: <field> <msg>"``."""

    errors = exc.errors()
    if not errors:
        return prefix
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    return f"{prefix}: {location} {first.get('msg', 'is invalid')}"


__all__ = ["CachedTableStore", "Clock", "validation_message"]

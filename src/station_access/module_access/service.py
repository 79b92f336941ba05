"""Cached per-module CRUD toggles with optimistic flag writes."""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from station_access.access.projector import find_module, module_actions
from station_access.backends.base import (
    DeleteResult,
    ListResult,
    RowId,
    RowResult,
    TableBackend,
    call_backend,
)
from station_access.common.logging import log_context
from station_access.common.results import OperationResult
from station_access.common.status import LoadStatus
from station_access.common.store import CachedTableStore, Clock
from station_access.settings import Settings, get_settings

from .registry import MODULE_ACTIONS, MODULES, ModuleDef, flag_column
from .schemas import ModuleActions, ModulePermission

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModuleAccessState:
    """Immutable snapshot of the module toggle table."""

    modules: tuple[ModulePermission, ...] = ()
    status: LoadStatus = LoadStatus.EMPTY
    error: str | None = None
    last_updated: float | None = None
    enabled: bool = True
    updating: frozenset[str] = field(default_factory=frozenset)

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.LOADING


class ModuleAccessRegistry(CachedTableStore[ModuleAccessState, ModulePermission]):
    """Shared store of module toggles consulted by every ``can_perform`` check."""

    event_prefix = "module_access"
    items_field = "modules"
    item_model = ModulePermission

    def __init__(
        self,
        backend: TableBackend,
        *,
        settings: Settings | None = None,
        clock: Clock = time.monotonic,
        modules: Sequence[ModuleDef] = MODULES,
    ) -> None:
        settings = settings or get_settings()
        super().__init__(
            backend,
            ModuleAccessState(enabled=settings.module_access_enabled),
            settings=settings,
            clock=clock,
        )
        self._definitions = tuple(modules)
        self._pending: Counter[str] = Counter()

    @property
    def modules(self) -> tuple[ModulePermission, ...]:
        return self._state.modules

    @property
    def enabled(self) -> bool:
        return self._state.enabled

    def get_module(self, module_key: str) -> ModulePermission | None:
        return find_module(self._state.modules, module_key)

    def actions_for(self, module_key: str) -> ModuleActions:
        return module_actions(module_key, self._state.modules, enabled=self._state.enabled)

    def can_perform(self, module_key: str, action: str) -> bool:
        return self.actions_for(module_key).allows(action)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    async def initialize_defaults(self) -> OperationResult:
        """Insert a default row for every known module that has none.

        Either every missing module is created or none is: rows inserted
        before a failure are deleted again.
        """

        listed = await call_backend(
            self._backend.list(),
            lambda error: ListResult(error=error),
            operation="list",
            table=self._backend.name,
        )
        if listed.error:
            logger.warning(
                "module_access.initialize.error",
                extra=log_context(error=listed.error),
            )
            self._transition(error=listed.error)
            return OperationResult.fail(listed.error)

        existing = {
            str(row.get("module_key") or row.get("module_name") or "").strip().lower()
            for row in listed.rows
        }
        missing = [definition for definition in self._definitions if definition.key not in existing]
        if not missing:
            logger.debug("module_access.initialize.noop")
            return OperationResult.ok()

        inserted: list[tuple[str, RowId]] = []
        failures: dict[str, str] = {}
        for definition in missing:
            result = await call_backend(
                self._backend.insert(definition.to_row()),
                lambda error: RowResult(error=error),
                operation="insert",
                table=self._backend.name,
            )
            if result.error or not result.row or result.row.get("id") is None:
                failures[definition.key] = result.error or "Row not returned"
                continue
            inserted.append((definition.key, result.row["id"]))

        if failures:
            await self._compensate_inserts(inserted)
            error = "Failed to initialize modules: " + ", ".join(
                f"{key} ({message})" for key, message in failures.items()
            )
            logger.warning(
                "module_access.initialize.error",
                extra=log_context(failed=sorted(failures), rolled_back=len(inserted)),
            )
            self._transition(error=error)
            return OperationResult.fail(error)

        await self._refresh_after_write()
        logger.info(
            "module_access.initialize.success",
            extra=log_context(created_modules=[key for key, _ in inserted]),
        )
        return OperationResult.ok()

    async def _compensate_inserts(self, inserted: list[tuple[str, RowId]]) -> None:
        for module_key, row_id in reversed(inserted):
            result = await call_backend(
                self._backend.delete(row_id),
                lambda error: DeleteResult(error=error),
                operation="delete",
                table=self._backend.name,
            )
            if result.error:
                logger.error(
                    "module_access.initialize.rollback_failed",
                    extra=log_context(module_key=module_key, row_id=row_id, error=result.error),
                )

    # ------------------------------------------------------------------
    # Optimistic flag writes
    # ------------------------------------------------------------------

    async def set_flag(self, module_key: str, flag: str, value: bool) -> OperationResult:
        """Toggle one action flag, applying it locally before the backend confirms."""

        if flag not in MODULE_ACTIONS:
            return OperationResult.fail(f"Unknown module action: {flag!r}")

        load_error = await self._ensure_loaded()
        if load_error:
            return OperationResult.fail(load_error)
        current = self.get_module(module_key)
        if current is None:
            return OperationResult.fail(f"Module {module_key!r} not found")

        column = flag_column(flag)
        previous = current.flag(flag)
        key = current.module_key

        self._pending[key] += 1
        self._replace_module(current.with_flag(flag, value), updating=self._updating())

        result = await call_backend(
            self._backend.update(current.id, {column: value}),
            lambda error: RowResult(error=error),
            operation="update",
            table=self._backend.name,
        )

        self._pending[key] -= 1
        if self._pending[key] <= 0:
            del self._pending[key]

        if result.error:
            latest = self._module_by_id(current.id)
            restored = latest.with_flag(flag, previous) if latest is not None else None
            self._replace_module(restored, updating=self._updating(), error=result.error)
            logger.warning(
                "module_access.set_flag.error",
                extra=log_context(module_key=key, flag=flag, error=result.error),
            )
            return OperationResult.fail(result.error)

        confirmed = self._confirmed_row(result.row, fallback=self._module_by_id(current.id))
        self._replace_module(confirmed, updating=self._updating(), error=None)
        logger.info(
            "module_access.set_flag.success",
            extra=log_context(module_key=key, flag=flag, value=value),
        )
        return OperationResult.ok()

    def _updating(self) -> frozenset[str]:
        return frozenset(self._pending)

    def _module_by_id(self, row_id: RowId) -> ModulePermission | None:
        for row in self._state.modules:
            if row.id == row_id:
                return row
        return None

    def _confirmed_row(
        self,
        row: dict[str, Any] | None,
        *,
        fallback: ModulePermission | None,
    ) -> ModulePermission | None:
        if not row:
            return fallback
        try:
            return ModulePermission.model_validate(row)
        except ValidationError:
            logger.warning(
                "module_access.set_flag.invalid_row",
                extra=log_context(row_id=row.get("id")),
            )
            return fallback

    def _replace_module(self, replacement: ModulePermission | None, **changes: Any) -> None:
        modules = self._state.modules
        if replacement is not None:
            modules = tuple(
                replacement if row.id == replacement.id else row for row in modules
            )
        self._transition(modules=modules, **changes)


__all__ = ["ModuleAccessRegistry", "ModuleAccessState"]

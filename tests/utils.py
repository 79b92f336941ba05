"""Test doubles and row builders shared across the suite."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from station_access.backends.base import DeleteResult, ListResult, RowId, RowResult
from station_access.backends.memory import InMemoryTableBackend


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBackend(InMemoryTableBackend):
    """In-memory table that counts calls and can be told to fail or stall."""

    def __init__(self, name: str, rows: Iterable[Mapping[str, Any]] = ()) -> None:
        super().__init__(name, rows)
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, list[str | None]] = {}
        self.exceptions: dict[str, Exception] = {}
        self.list_gate: asyncio.Event | None = None
        self.update_gate: asyncio.Event | None = None
        self.patches: list[dict[str, Any]] = []

    def fail_next(self, operation: str, error: str, *, times: int = 1, after: int = 0) -> None:
        """Fail the next ``times`` calls of ``operation`` once ``after`` calls have passed."""

        self.failures.setdefault(operation, []).extend([None] * after + [error] * times)

    def _pop_failure(self, operation: str) -> str | None:
        self.calls[operation] += 1
        if operation in self.exceptions:
            raise self.exceptions[operation]
        pending = self.failures.get(operation)
        if pending:
            return pending.pop(0)
        return None

    async def list(self, filters: Mapping[str, Any] | None = None) -> ListResult:
        error = self._pop_failure("list")
        if self.list_gate is not None:
            await self.list_gate.wait()
        if error:
            return ListResult(error=error)
        return await super().list(filters)

    async def insert(self, row: Mapping[str, Any]) -> RowResult:
        error = self._pop_failure("insert")
        if error:
            return RowResult(error=error)
        return await super().insert(row)

    async def update(self, row_id: RowId, patch: Mapping[str, Any]) -> RowResult:
        error = self._pop_failure("update")
        self.patches.append(dict(patch))
        if self.update_gate is not None:
            await self.update_gate.wait()
        if error:
            return RowResult(error=error)
        return await super().update(row_id, patch)

    async def delete(self, row_id: RowId) -> DeleteResult:
        error = self._pop_failure("delete")
        if error:
            return DeleteResult(error=error)
        return await super().delete(row_id)


def station_row(name: str, **extra: Any) -> dict[str, Any]:
    row: dict[str, Any] = {"name": name, "status": "active"}
    row.update(extra)
    return row


def module_row(module_key: str, **flags: bool) -> dict[str, Any]:
    row: dict[str, Any] = {
        "module_key": module_key,
        "display_name": module_key.title(),
        "create_enabled": False,
        "edit_enabled": False,
        "delete_enabled": False,
        "view_enabled": True,
    }
    row.update({f"{flag}_enabled": value for flag, value in flags.items()})
    return row

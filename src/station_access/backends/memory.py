"""Dict-backed table used for development and tests."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from station_access.common.time import utc_now

from .base import DeleteResult, ListResult, Row, RowId, RowResult


class InMemoryTableBackend:
    """In-process table with auto-incrementing integer ids."""

    def __init__(self, name: str, rows: Iterable[Mapping[str, Any]] = ()) -> None:
        self.name = name
        self._rows: dict[RowId, Row] = {}
        self._next_id = 1
        for row in rows:
            self._store(dict(row))

    def _store(self, row: Row) -> Row:
        if row.get("id") is None:
            row["id"] = self._next_id
        row.setdefault("updated_at", utc_now())
        if isinstance(row["id"], int):
            self._next_id = max(self._next_id, row["id"] + 1)
        self._rows[row["id"]] = row
        return row

    @property
    def rows(self) -> list[Row]:
        return [copy.deepcopy(row) for row in self._rows.values()]

    async def list(self, filters: Mapping[str, Any] | None = None) -> ListResult:
        rows = [
            copy.deepcopy(row)
            for row in self._rows.values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        return ListResult(rows=rows)

    async def insert(self, row: Mapping[str, Any]) -> RowResult:
        stored = self._store(copy.deepcopy(dict(row)))
        return RowResult(row=copy.deepcopy(stored))

    async def update(self, row_id: RowId, patch: Mapping[str, Any]) -> RowResult:
        current = self._rows.get(row_id)
        if current is None:
            return RowResult(error=f"Row {row_id!r} not found in {self.name}")
        current.update(copy.deepcopy({k: v for k, v in patch.items() if k != "id"}))
        current["updated_at"] = utc_now()
        return RowResult(row=copy.deepcopy(current))

    async def delete(self, row_id: RowId) -> DeleteResult:
        if self._rows.pop(row_id, None) is None:
            return DeleteResult(error=f"Row {row_id!r} not found in {self.name}")
        return DeleteResult()


__all__ = ["InMemoryTableBackend"]

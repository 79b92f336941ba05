"""SQLAlchemy-backed implementation of :class:`TableBackend`."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from station_access.common.logging import log_context

from .base import DeleteResult, ListResult, Row, RowId, RowResult, describe_error

logger = logging.getLogger(__name__)


class SqlTableBackend:
    """One SQL table reached through an async engine.

    Unknown columns in inserts and patches are dropped; database errors are
    reported through the result's ``error`` field.
    """

    def __init__(self, engine: AsyncEngine, table: Table) -> None:
        self._engine = engine
        self._table = table
        self.name = table.name

    def _columns(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in values.items() if key in self._table.c}

    @staticmethod
    def _row(mapping: Mapping[str, Any]) -> Row:
        return dict(mapping)

    async def list(self, filters: Mapping[str, Any] | None = None) -> ListResult:
        stmt = select(self._table).order_by(self._table.c.id)
        for key, value in (filters or {}).items():
            if key in self._table.c:
                stmt = stmt.where(self._table.c[key] == value)
        try:
            async with self._engine.connect() as connection:
                result = await connection.execute(stmt)
                rows = [self._row(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            logger.warning(
                "sql_backend.list.error",
                extra=log_context(table=self.name, error=describe_error(exc)),
            )
            return ListResult(error=describe_error(exc))
        return ListResult(rows=rows)

    async def insert(self, row: Mapping[str, Any]) -> RowResult:
        values = self._columns(row)
        values.pop("id", None)
        stmt = insert(self._table).values(**values).returning(*self._table.c)
        try:
            async with self._engine.begin() as connection:
                result = await connection.execute(stmt)
                created = result.mappings().one()
        except SQLAlchemyError as exc:
            logger.warning(
                "sql_backend.insert.error",
                extra=log_context(table=self.name, error=describe_error(exc)),
            )
            return RowResult(error=describe_error(exc))
        return RowResult(row=self._row(created))

    async def update(self, row_id: RowId, patch: Mapping[str, Any]) -> RowResult:
        values = self._columns(patch)
        values.pop("id", None)
        stmt = (
            update(self._table)
            .where(self._table.c.id == row_id)
            .values(**values)
            .returning(*self._table.c)
        )
        try:
            async with self._engine.begin() as connection:
                result = await connection.execute(stmt)
                updated = result.mappings().one_or_none()
        except SQLAlchemyError as exc:
            logger.warning(
                "sql_backend.update.error",
                extra=log_context(table=self.name, row_id=row_id, error=describe_error(exc)),
            )
            return RowResult(error=describe_error(exc))
        if updated is None:
            return RowResult(error=f"Row {row_id!r} not found in {self.name}")
        return RowResult(row=self._row(updated))

    async def delete(self, row_id: RowId) -> DeleteResult:
        stmt = delete(self._table).where(self._table.c.id == row_id)
        try:
            async with self._engine.begin() as connection:
                result = await connection.execute(stmt)
        except SQLAlchemyError as exc:
            logger.warning(
                "sql_backend.delete.error",
                extra=log_context(table=self.name, row_id=row_id, error=describe_error(exc)),
            )
            return DeleteResult(error=describe_error(exc))
        if result.rowcount == 0:
            return DeleteResult(error=f"Row {row_id!r} not found in {self.name}")
        return DeleteResult()


__all__ = ["SqlTableBackend"]

"""Table-level contract between the stores and a remote data store."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar, runtime_checkable

from station_access.common.logging import log_context

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")

Row = dict[str, Any]
RowId = int | str


@dataclass(frozen=True, slots=True)
class ListResult:
    rows: list[Row] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RowResult:
    row: Row | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteResult:
    error: str | None = None


@runtime_checkable
class TableBackend(Protocol):
    """One table of the remote store.

    Implementations report failures through the ``error`` field of the
    returned result instead of raising, and impose no timeout of their own
    unless configured to.
    """

    name: str

    async def list(self, filters: Mapping[str, Any] | None = None) -> ListResult: ...

    async def insert(self, row: Mapping[str, Any]) -> RowResult: ...

    async def update(self, row_id: RowId, patch: Mapping[str, Any]) -> RowResult: ...

    async def delete(self, row_id: RowId) -> DeleteResult: ...


def describe_error(exc: BaseException) -> str:
    """Render an exception as a single-line error message."""

    message = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


async def call_backend(
    call: Awaitable[ResultT],
    failure: Callable[[str], ResultT],
    *,
    operation: str,
    table: str,
) -> ResultT:
    """Await a backend call, turning an unexpected exception into a failed result."""

    try:
        return await call
    except Exception as exc:
        logger.exception(
            "backend.call.unexpected_error",
            extra=log_context(operation=operation, table=table),
        )
        return failure(describe_error(exc))


__all__ = [
    "DeleteResult",
    "ListResult",
    "Row",
    "RowId",
    "RowResult",
    "TableBackend",
    "call_backend",
    "describe_error",
]

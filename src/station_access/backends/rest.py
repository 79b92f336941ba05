"""PostgREST-style HTTP implementation of :class:`TableBackend`.

Targets the ``/rest/v1/<table>`` surface exposed by Supabase and plain
PostgREST deployments: equality filters are sent as ``column=eq.value`` query
parameters and writes ask for the stored representation back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic_core import to_jsonable_python

from station_access.common.logging import log_context
from station_access.settings import Settings

from .base import DeleteResult, ListResult, RowId, RowResult, describe_error

logger = logging.getLogger(__name__)

_HTTP_LIMITS = httpx.Limits(max_connections=10, max_keepalive_connections=5)
_REST_PREFIX = "/rest/v1"


def build_rest_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared HTTP client described by ``settings``."""

    if not settings.rest_url:
        raise ValueError("rest_url must be configured to build a REST client")
    headers = {"Accept": "application/json"}
    api_key = settings.rest_api_key_value
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"
    return httpx.AsyncClient(
        base_url=settings.rest_url,
        headers=headers,
        timeout=httpx.Timeout(settings.rest_timeout.total_seconds()),
        limits=_HTTP_LIMITS,
        follow_redirects=False,
    )


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestTableBackend:
    """One table behind a PostgREST endpoint."""

    def __init__(self, client: httpx.AsyncClient, table: str) -> None:
        self._client = client
        self.name = table
        self._path = f"{_REST_PREFIX}/{table}"

    async def _send(
        self,
        method: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> tuple[Any, str | None]:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self._client.request(
                method,
                self._path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            error = describe_error(exc)
            logger.warning(
                "rest_backend.request.error",
                extra=log_context(table=self.name, method=method, error=error),
            )
            return None, error

        if response.is_error:
            error = _response_error(response)
            logger.warning(
                "rest_backend.request.rejected",
                extra=log_context(
                    table=self.name,
                    method=method,
                    status_code=response.status_code,
                    error=error,
                ),
            )
            return None, error

        if not response.content:
            return None, None
        try:
            return response.json(), None
        except ValueError:
            return None, f"Invalid JSON from {self.name}"

    async def list(self, filters: Mapping[str, Any] | None = None) -> ListResult:
        params = {"select": "*", "order": "id.asc"}
        for key, value in (filters or {}).items():
            params[key] = _eq(value)
        payload, error = await self._send("GET", params=params)
        if error:
            return ListResult(error=error)
        if not isinstance(payload, list):
            return ListResult(error=f"Unexpected list payload from {self.name}")
        return ListResult(rows=[dict(row) for row in payload if isinstance(row, dict)])

    async def insert(self, row: Mapping[str, Any]) -> RowResult:
        body = to_jsonable_python({key: value for key, value in row.items() if key != "id"})
        payload, error = await self._send(
            "POST",
            json=body,
            prefer="return=representation",
        )
        if error:
            return RowResult(error=error)
        return _single_row(payload, table=self.name)

    async def update(self, row_id: RowId, patch: Mapping[str, Any]) -> RowResult:
        body = to_jsonable_python({key: value for key, value in patch.items() if key != "id"})
        payload, error = await self._send(
            "PATCH",
            params={"id": _eq(row_id)},
            json=body,
            prefer="return=representation",
        )
        if error:
            return RowResult(error=error)
        return _single_row(payload, table=self.name, row_id=row_id)

    async def delete(self, row_id: RowId) -> DeleteResult:
        _, error = await self._send("DELETE", params={"id": _eq(row_id)})
        return DeleteResult(error=error)


def _single_row(payload: Any, *, table: str, row_id: RowId | None = None) -> RowResult:
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        target = f"Row {row_id!r}" if row_id is not None else "Row"
        return RowResult(error=f"{target} not returned by {table}")
    return RowResult(row=dict(payload))


def _response_error(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or body.get("hint")
        if message:
            return str(message)
    return f"HTTP {response.status_code} from {response.request.url.path}"


__all__ = ["RestTableBackend", "build_rest_client"]

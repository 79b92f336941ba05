from __future__ import annotations

import json

import httpx
import pytest

from station_access.backends.rest import RestTableBackend, build_rest_client
from station_access.settings import Settings

pytestmark = pytest.mark.asyncio


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="https://db.example.test",
        transport=httpx.MockTransport(handler),
    )


async def test_list_sends_equality_filters() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "name": "North"}, "junk"])

    async with _client(handler) as client:
        result = await RestTableBackend(client, "stations").list(
            {"status": "active", "featured": True}
        )

    assert result.rows == [{"id": 1, "name": "North"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/stations"
    assert request.url.params["status"] == "eq.active"
    assert request.url.params["featured"] == "eq.true"
    assert request.url.params["order"] == "id.asc"


async def test_insert_and_update_request_representation() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(201, json=[{"id": 5, **body}])

    async with _client(handler) as client:
        backend = RestTableBackend(client, "module_access")
        inserted = await backend.insert({"id": 3, "module_key": "sales"})
        updated = await backend.update(5, {"view_enabled": False})

    assert inserted.row == {"id": 5, "module_key": "sales"}
    assert updated.row == {"id": 5, "view_enabled": False}
    assert seen[0].method == "POST"
    assert seen[0].headers["Prefer"] == "return=representation"
    assert seen[1].method == "PATCH"
    assert seen[1].url.params["id"] == "eq.5"


async def test_server_errors_become_messages() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(500, text="oops")
        return httpx.Response(409, json={"message": "duplicate key value"})

    async with _client(handler) as client:
        backend = RestTableBackend(client, "stations")
        inserted = await backend.insert({"name": "North"})
        deleted = await backend.delete(1)

    assert inserted.error == "duplicate key value"
    assert deleted.error == "HTTP 500 from /rest/v1/stations"


async def test_transport_errors_become_messages() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        result = await RestTableBackend(client, "stations").list()

    assert result.error == "ConnectError: connection refused"


async def test_update_without_returned_row_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        result = await RestTableBackend(client, "stations").update(7, {"name": "X"})

    assert result.error == "Row 7 not returned by stations"


async def test_build_rest_client_sets_auth_headers() -> None:
    settings = Settings(
        _env_file=None,
        backend="rest",
        rest_url="https://db.example.test/",
        rest_api_key="anon-key",
        rest_timeout="3s",
    )

    client = build_rest_client(settings)
    try:
        assert str(client.base_url).rstrip("/") == "https://db.example.test"
        assert client.headers["apikey"] == "anon-key"
        assert client.headers["Authorization"] == "Bearer anon-key"
        assert client.timeout.connect == 3.0
    finally:
        await client.aclose()

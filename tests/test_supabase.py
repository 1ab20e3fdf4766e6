import asyncio
import json

import httpx
import pytest

from store.supabase import StoreError, SupabaseClient, contains, eq


def _client(handler) -> tuple[SupabaseClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseClient(http, url="https://db.example.co/", key="anon-key"), http


def test_select_builds_postgrest_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "1"}])

    store, http = _client(handler)
    rows = asyncio.run(
        store.select(
            "disasters",
            filters={"tags": contains(["flood"])},
            order="created_at.desc",
            limit=5,
            offset=10,
        )
    )

    assert rows == [{"id": "1"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/disasters"
    assert request.url.params["tags"] == 'cs.{"flood"}'
    assert request.url.params["order"] == "created_at.desc"
    assert request.url.params["limit"] == "5"
    assert request.url.params["offset"] == "10"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"


def test_insert_posts_row_and_asks_for_representation() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(201, json=[{**body[0], "id": "abc"}])

    store, _ = _client(handler)
    row = asyncio.run(store.insert("reports", {"content": "x"}))

    assert row == {"content": "x", "id": "abc"}
    assert seen[0].method == "POST"
    assert seen[0].headers["prefer"] == "return=representation"


def test_rpc_path_and_update_filters() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    store, _ = _client(handler)

    async def run():
        await store.rpc("find_nearby_resources", {"disaster_id": "1"})
        await store.update("resources", {"status": "full"}, filters={"id": eq("9")})

    asyncio.run(run())
    assert seen[0].url.path == "/rest/v1/rpc/find_nearby_resources"
    assert seen[1].method == "PATCH"
    assert seen[1].url.params["id"] == "eq.9"


def test_http_errors_raise_store_error() -> None:
    store, _ = _client(lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(StoreError, match="store_http_503"):
        asyncio.run(store.select("disasters"))


def test_unconfigured_store_raises_without_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseClient(http, url=None, key=None)
    assert store.configured is False
    with pytest.raises(StoreError):
        asyncio.run(store.select("disasters"))

import asyncio
from pathlib import Path

import httpx

from app.fallback import PRIMARY, SYNTHETIC, Outcome, capture, meta_envelope, resolve
from ingest.errors import AdapterError
from store.cache import CacheStore, SqliteCacheBackend
from store.db import open_database


def _cache() -> CacheStore:
    return CacheStore(SqliteCacheBackend(open_database(Path(":memory:"))))


def test_capture_tags_adapter_errors() -> None:
    async def boom():
        raise AdapterError("upstream_down")

    outcome = asyncio.run(capture(boom, source="svc"))
    assert not outcome.ok
    assert outcome.error == "upstream_down"


def test_capture_tags_transport_errors() -> None:
    async def boom():
        raise httpx.ConnectError("refused")

    outcome = asyncio.run(capture(boom, source="svc"))
    assert not outcome.ok
    assert "refused" in outcome.error


def test_capture_success_keeps_source() -> None:
    async def ok():
        return [1]

    outcome = asyncio.run(capture(ok, source="svc"))
    assert outcome.ok
    assert outcome.value == [1]
    assert outcome.source == "svc"


def test_success_is_cached_and_served_from_cache() -> None:
    cache = _cache()
    calls = []

    async def primary():
        calls.append(1)
        return Outcome.success({"n": len(calls)}, source="svc")

    async def run():
        first = await resolve(
            cache, key="k", ttl_seconds=60, primary=primary, fallback=lambda r: None
        )
        second = await resolve(
            cache, key="k", ttl_seconds=60, primary=primary, fallback=lambda r: None
        )
        return first, second

    first, second = asyncio.run(run())
    assert len(calls) == 1
    assert first.provenance == PRIMARY and not first.cached
    assert second.cached and second.value == {"n": 1}
    assert second.source == "svc"


def test_failure_substitutes_and_is_never_cached() -> None:
    cache = _cache()
    calls = []

    async def failing():
        calls.append(1)
        return Outcome.failure("timeout")

    async def run():
        results = []
        for _ in range(2):
            results.append(
                await resolve(
                    cache,
                    key="k",
                    ttl_seconds=60,
                    primary=failing,
                    fallback=lambda reason: {"mock": True, "why": reason},
                )
            )
        return results, await cache.get("k")

    results, stored = asyncio.run(run())
    assert len(calls) == 2
    assert all(r.provenance == SYNTHETIC for r in results)
    assert results[0].value == {"mock": True, "why": "timeout"}
    assert results[0].fallback_reason == "timeout"
    assert stored is None


def test_meta_envelope_carries_reason_only_when_synthetic() -> None:
    async def failing():
        return Outcome.failure("store_http_503")

    async def ok():
        return Outcome.success([], source="supabase")

    synthetic = asyncio.run(
        resolve(_cache(), key="a", ttl_seconds=1, primary=failing, fallback=lambda r: [])
    )
    primary = asyncio.run(
        resolve(_cache(), key="b", ttl_seconds=1, primary=ok, fallback=lambda r: [])
    )

    meta = meta_envelope(synthetic, total_count=0)
    assert meta["provenance"] == "synthetic"
    assert meta["fallback_reason"] == "store_http_503"
    assert meta["total_count"] == 0
    assert "fallback_reason" not in meta_envelope(primary)

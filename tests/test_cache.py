import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

from store.cache import CacheStore, SqliteCacheBackend, make_cache_key
from store.db import open_database


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 6, 21, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


def _cache(clock: _Clock) -> CacheStore:
    db = open_database(Path(":memory:"))
    return CacheStore(SqliteCacheBackend(db), default_ttl_seconds=60, clock=clock)


class _BrokenBackend:
    async def read(self, key):
        raise OSError("disk gone")

    async def write(self, key, value, expires_at):
        raise OSError("disk gone")

    async def remove(self, key):
        raise OSError("disk gone")

    async def remove_expired(self, now):
        raise OSError("disk gone")


def test_set_then_get_returns_value() -> None:
    cache = _cache(_Clock())

    async def run():
        assert await cache.set("k", {"a": [1, 2]}, 60) is True
        return await cache.get("k")

    assert asyncio.run(run()) == {"a": [1, 2]}


def test_get_after_expiry_is_a_miss_and_evicts() -> None:
    clock = _Clock()
    cache = _cache(clock)

    async def run():
        await cache.set("k", "v", 10)
        clock.advance(9)
        before = await cache.get("k")
        clock.advance(1)
        at_expiry = await cache.get("k")
        clock.now -= timedelta(seconds=5)
        after_eviction = await cache.get("k")
        return before, at_expiry, after_eviction

    before, at_expiry, after_eviction = asyncio.run(run())
    assert before == "v"
    assert at_expiry is None
    # The expired read deleted the row, so rewinding the clock does not revive it.
    assert after_eviction is None


def test_last_write_wins() -> None:
    cache = _cache(_Clock())

    async def run():
        await cache.set("k", 1)
        await cache.set("k", 2)
        return await cache.get("k")

    assert asyncio.run(run()) == 2


def test_delete_expired_counts_removed_rows() -> None:
    clock = _Clock()
    cache = _cache(clock)

    async def run():
        await cache.set("short", 1, 5)
        await cache.set("long", 2, 500)
        clock.advance(10)
        removed = await cache.delete_expired()
        return removed, await cache.get("long")

    removed, long_value = asyncio.run(run())
    assert removed == 1
    assert long_value == 2


def test_delete_removes_entry() -> None:
    cache = _cache(_Clock())

    async def run():
        await cache.set("k", 1)
        assert await cache.delete("k") is True
        return await cache.get("k")

    assert asyncio.run(run()) is None


def test_backend_errors_are_swallowed() -> None:
    cache = CacheStore(_BrokenBackend())

    async def run():
        return (
            await cache.get("k"),
            await cache.set("k", 1),
            await cache.delete("k"),
            await cache.delete_expired(),
        )

    assert asyncio.run(run()) == (None, False, False, 0)


def test_cache_key_ignores_key_order() -> None:
    a = make_cache_key("resources", {"lat": 1.0, "lng": 2.0, "nested": {"x": 1, "y": 2}})
    b = make_cache_key("resources", {"nested": {"y": 2, "x": 1}, "lng": 2.0, "lat": 1.0})
    assert a == b
    assert a.startswith("resources:")


def test_cache_key_separates_namespaces_and_values() -> None:
    assert make_cache_key("geocoding", "NYC") != make_cache_key("location_extraction", "NYC")
    assert make_cache_key("geocoding", "NYC") != make_cache_key("geocoding", "LA")

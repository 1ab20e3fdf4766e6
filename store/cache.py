"""Key/value cache with time-based expiry.

Reads check-and-evict: an entry past ``expires_at`` is deleted on the read that
finds it and is never returned. Backend failures are logged and otherwise
invisible to callers (a failed read is a miss, a failed write is a no-op).
Concurrent misses for one key all reach the primary source and the last write
wins.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import sqlite3
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import structlog

from ingest.errors import AdapterError
from normalize.timeutil import parse_iso, utc_now
from store.db import Database
from store.supabase import SupabaseClient, eq, lt


logger = structlog.get_logger(__name__)

LOCATION_EXTRACTION_TTL = 3600
GEOCODING_TTL = 3600
RESOURCES_TTL = 600
SOCIAL_MEDIA_TTL = 300
OFFICIAL_UPDATES_TTL = 1800
IMAGE_VERIFICATION_TTL = 86400

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _format_ts(dt: datetime) -> str:
    return dt.astimezone(tz=UTC).strftime(_TS_FORMAT)


def make_cache_key(namespace: str, params: Any) -> str:
    """Derive a key that is stable under dict key reordering."""
    canonical = json.dumps(
        params, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{namespace}:{digest}"


class CacheBackend(Protocol):
    async def read(self, key: str) -> tuple[Any, str] | None: ...

    async def write(self, key: str, value: Any, expires_at: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def remove_expired(self, now: str) -> int: ...


class SqliteCacheBackend:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def read(self, key: str) -> tuple[Any, str] | None:
        with self._db.lock:
            row = self._db.conn.execute(
                "SELECT value, expires_at FROM cache WHERE key = ?;", (key,)
            ).fetchone()
        if row is None:
            return None
        return (json.loads(row["value"]), str(row["expires_at"]))

    async def write(self, key: str, value: Any, expires_at: str) -> None:
        payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        with self._db.lock:
            self._db.conn.execute(
                """
                INSERT INTO cache(key, value, expires_at, created_at)
                VALUES(?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                  value = excluded.value,
                  expires_at = excluded.expires_at,
                  created_at = excluded.created_at;
                """,
                (key, payload, expires_at, _format_ts(utc_now())),
            )
            self._db.conn.commit()

    async def remove(self, key: str) -> None:
        with self._db.lock:
            self._db.conn.execute("DELETE FROM cache WHERE key = ?;", (key,))
            self._db.conn.commit()

    async def remove_expired(self, now: str) -> int:
        with self._db.lock:
            cur = self._db.conn.execute(
                "DELETE FROM cache WHERE expires_at < ?;", (now,)
            )
            self._db.conn.commit()
        return int(cur.rowcount)


class StoreCacheBackend:
    """The ``cache`` table of the primary store."""

    def __init__(self, store: SupabaseClient) -> None:
        self._store = store

    async def read(self, key: str) -> tuple[Any, str] | None:
        row = await self._store.select_one(
            "cache", filters={"key": eq(key)}, columns="value,expires_at"
        )
        if row is None:
            return None
        return (row["value"], str(row["expires_at"]))

    async def write(self, key: str, value: Any, expires_at: str) -> None:
        await self._store.upsert(
            "cache", {"key": key, "value": value, "expires_at": expires_at}
        )

    async def remove(self, key: str) -> None:
        await self._store.delete("cache", filters={"key": eq(key)})

    async def remove_expired(self, now: str) -> int:
        rows = await self._store.delete("cache", filters={"expires_at": lt(now)})
        return len(rows)


_BACKEND_ERRORS = (AdapterError, sqlite3.Error, OSError, ValueError, KeyError, TypeError)


class CacheStore:
    def __init__(
        self,
        backend: CacheBackend,
        *,
        default_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._default_ttl = default_ttl_seconds
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        try:
            entry = await self._backend.read(key)
        except _BACKEND_ERRORS as e:
            logger.warning("cache get failed", key=key, error=str(e))
            return None
        if entry is None:
            logger.debug("cache miss", key=key)
            return None

        value, expires_at = entry
        try:
            expired = parse_iso(expires_at) <= self._clock()
        except ValueError:
            expired = True
        if expired:
            await self.delete(key)
            return None

        logger.info("cache hit", key=key)
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = _format_ts(self._clock() + timedelta(seconds=ttl))
        try:
            await self._backend.write(key, value, expires_at)
        except _BACKEND_ERRORS as e:
            logger.warning("cache set failed", key=key, error=str(e))
            return False
        logger.info("cache set", key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        try:
            await self._backend.remove(key)
        except _BACKEND_ERRORS as e:
            logger.warning("cache delete failed", key=key, error=str(e))
            return False
        return True

    async def delete_expired(self) -> int:
        try:
            removed = await self._backend.remove_expired(_format_ts(self._clock()))
        except _BACKEND_ERRORS as e:
            logger.warning("cache sweep failed", error=str(e))
            return 0
        logger.info("expired cache entries cleared", removed=removed)
        return removed


async def run_cache_sweeper(cache: CacheStore, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        await cache.delete_expired()

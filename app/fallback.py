"""Cache-through resolution with an explicit substitute policy.

Adapters raise; :func:`capture` turns the raise into a tagged
:class:`Outcome`, and :func:`resolve` decides between a cached value, the
primary result, and a synthetic substitute::

    CHECK_CACHE -> HIT: return
                -> MISS: CALL_PRIMARY -> SUCCESS: WRITE_CACHE, return
                                      -> FAILURE: SUBSTITUTE, return

Synthetic values are never cached, so the next request after the primary
source recovers sees real data again.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
import structlog

from ingest.errors import AdapterError
from normalize.timeutil import utc_now_iso
from store.cache import CacheStore


logger = structlog.get_logger(__name__)

T = TypeVar("T")

PRIMARY = "primary"
SYNTHETIC = "synthetic"

FAILURE_TYPES: tuple[type[BaseException], ...] = (
    AdapterError,
    httpx.HTTPError,
    KeyError,
    ValueError,
    TypeError,
)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    source: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, *, source: str) -> Outcome[T]:
        return cls(value=value, source=source)

    @classmethod
    def failure(cls, reason: str) -> Outcome[T]:
        return cls(error=reason or "unknown_error")


async def capture(call: Callable[[], Awaitable[T]], *, source: str) -> Outcome[T]:
    try:
        value = await call()
    except FAILURE_TYPES as e:
        reason = str(e) or e.__class__.__name__
        logger.warning("primary source failed", source=source, reason=reason)
        return Outcome.failure(reason)
    return Outcome.success(value, source=source)


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    provenance: str
    source: str
    cached: bool = False
    fallback_reason: str | None = None

    @property
    def synthetic(self) -> bool:
        return self.provenance == SYNTHETIC


def substitute(value: T, *, reason: str, source: str = "mock_data") -> Resolved[T]:
    return Resolved(
        value=value, provenance=SYNTHETIC, source=source, fallback_reason=reason
    )


def accept(outcome: Outcome[T]) -> Resolved[T]:
    return Resolved(
        value=outcome.value, provenance=PRIMARY, source=outcome.source or PRIMARY
    )


async def resolve(
    cache: CacheStore,
    *,
    key: str,
    ttl_seconds: int,
    primary: Callable[[], Awaitable[Outcome[T]]],
    fallback: Callable[[str], T],
    fallback_source: str = "mock_data",
) -> Resolved[T]:
    hit = await cache.get(key)
    if isinstance(hit, dict) and "value" in hit:
        return Resolved(
            value=hit["value"],
            provenance=PRIMARY,
            source=str(hit.get("source") or PRIMARY),
            cached=True,
        )

    outcome = await primary()
    if outcome.ok:
        if outcome.value is not None:
            await cache.set(
                key, {"value": outcome.value, "source": outcome.source}, ttl_seconds
            )
        return accept(outcome)

    reason = outcome.error or "unknown_error"
    logger.warning("substituting synthetic data", key=key, reason=reason)
    return substitute(fallback(reason), reason=reason, source=fallback_source)


def meta_envelope(resolved: Resolved[Any], **extra: Any) -> dict[str, Any]:
    meta: dict[str, Any] = dict(extra)
    meta["source"] = resolved.source
    meta["provenance"] = resolved.provenance
    meta["cached"] = resolved.cached
    if resolved.fallback_reason is not None:
        meta["fallback_reason"] = resolved.fallback_reason
    meta["last_updated"] = utc_now_iso()
    return meta

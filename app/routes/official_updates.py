from __future__ import annotations

from collections import Counter
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query, Request

from app.auth import User, current_user
from app.fallback import Resolved, capture, meta_envelope, resolve
from app.params import is_since, parse_since
from ingest.errors import AdapterError
from ingest.scrapers import collect_updates
from ingest.sources import OfficialSource
from mockdata import fixtures
from normalize.priority import PRIORITY_LEVELS
from normalize.timeutil import parse_iso, utc_now_iso
from store.cache import OFFICIAL_UPDATES_TTL, make_cache_key


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["official-updates"])

Priority = Literal["critical", "high", "normal", "low"]


def _published_ts(update: dict) -> float:
    value = update.get("published_at")
    if not isinstance(value, str):
        return 0.0
    try:
        return parse_iso(value).timestamp()
    except ValueError:
        return 0.0


def _matches_source(update: dict, source: str) -> bool:
    wanted = source.casefold()
    return (
        str(update.get("source_id") or "").casefold() == wanted
        or wanted in str(update.get("source") or "").casefold()
    )


async def resolve_updates(
    request: Request, disaster_id: str, source: str | None
) -> Resolved[dict]:
    state = request.app.state
    catalogue: list[OfficialSource] = state.official_sources
    targets = [s for s in catalogue if source is None or s.source_id == source]

    async def scrape() -> dict:
        updates, attempted, errors = await collect_updates(
            state.http, targets, user_agent=state.settings.user_agent
        )
        if not updates:
            detail = ";".join(f"{k}={v}" for k, v in errors.items()) or "empty"
            raise AdapterError(f"no_updates_collected:{detail}")
        return {
            "updates": updates,
            "sources_attempted": attempted,
            "scraped_at": utc_now_iso(),
        }

    return await resolve(
        state.cache,
        key=make_cache_key("official_updates", {"disaster_id": disaster_id, "source": source}),
        ttl_seconds=OFFICIAL_UPDATES_TTL,
        primary=lambda: capture(scrape, source="scraper"),
        fallback=lambda reason: {
            "updates": fixtures.official_updates(),
            "sources_attempted": [s.source_id for s in targets if s.scrapable],
            "scraped_at": utc_now_iso(),
        },
    )


@router.get("/{disaster_id}/official-updates")
async def official_updates(
    request: Request,
    disaster_id: str,
    source: str | None = None,
    priority: Priority | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    since: str | None = None,
    user: User = Depends(current_user),
) -> dict:
    since_dt = parse_since(since)
    resolved = await resolve_updates(request, disaster_id, source)
    collected: list[dict] = resolved.value["updates"]

    updates = collected
    if source:
        updates = [u for u in updates if _matches_source(u, source)]
    if priority is not None:
        updates = [u for u in updates if u.get("priority") == priority]
    if since_dt is not None:
        updates = [u for u in updates if is_since(u.get("published_at"), since_dt)]
    updates = sorted(updates, key=_published_ts, reverse=True)[:limit]

    logger.info(
        "official updates served",
        disaster_id=disaster_id,
        count=len(updates),
        provenance=resolved.provenance,
    )
    return {
        "disaster_id": disaster_id,
        "data": updates,
        "meta": meta_envelope(
            resolved,
            total_count=len(updates),
            total_found=len(collected),
            filters={"source": source, "priority": priority, "since": since},
            scraped_at=resolved.value.get("scraped_at"),
            sources_attempted=resolved.value.get("sources_attempted") or [],
        ),
    }


@router.get("/{disaster_id}/official-updates/sources")
async def official_update_sources(
    request: Request, disaster_id: str, user: User = Depends(current_user)
) -> dict:
    catalogue: list[OfficialSource] = request.app.state.official_sources
    return {
        "available_sources": [s.public_info() for s in catalogue],
        "timestamp": utc_now_iso(),
    }


@router.get("/{disaster_id}/official-updates/summary")
async def official_updates_summary(
    request: Request, disaster_id: str, user: User = Depends(current_user)
) -> dict:
    resolved = await resolve_updates(request, disaster_id, None)
    updates = sorted(resolved.value["updates"], key=_published_ts, reverse=True)

    by_priority = {level: 0 for level in PRIORITY_LEVELS}
    for update in updates:
        level = update.get("priority")
        if level in by_priority:
            by_priority[level] += 1

    summary = {
        "total_updates": len(updates),
        "by_priority": by_priority,
        "by_source": dict(Counter(str(u.get("source")) for u in updates)),
        "by_type": dict(Counter(str(u.get("type")) for u in updates)),
        "latest_update": updates[0].get("published_at") if updates else None,
        "most_recent_critical": next(
            (u for u in updates if u.get("priority") == "critical"), None
        ),
    }
    return {
        "disaster_id": disaster_id,
        "summary": summary,
        "meta": meta_envelope(resolved),
        "timestamp": utc_now_iso(),
    }

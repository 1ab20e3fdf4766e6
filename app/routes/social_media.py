from __future__ import annotations

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query, Request

from app.auth import User, current_user
from app.fallback import Resolved, capture, meta_envelope, resolve
from app.params import is_since, parse_since, split_csv
from mockdata import fixtures
from normalize.priority import PRIORITY_LEVELS, bucket_by_priority, enrich_post
from normalize.timeutil import utc_now_iso
from store.cache import SOCIAL_MEDIA_TTL, make_cache_key


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["social-media"])

DEFAULT_KEYWORDS = ["flood", "emergency", "help", "rescue"]

Priority = Literal["critical", "high", "normal", "low"]


async def resolve_posts(
    request: Request, disaster_id: str, keywords: list[str], limit: int
) -> Resolved[list[dict]]:
    state = request.app.state
    return await resolve(
        state.cache,
        key=make_cache_key(
            "social_media",
            {"disaster_id": disaster_id, "keywords": keywords, "limit": limit},
        ),
        ttl_seconds=SOCIAL_MEDIA_TTL,
        primary=lambda: capture(
            lambda: state.twitter.search_recent(keywords, limit), source="twitter_api"
        ),
        fallback=lambda reason: fixtures.realtime_posts(keywords),
        fallback_source="mock_api",
    )


@router.get("/{disaster_id}/social-media")
async def social_media(
    request: Request,
    disaster_id: str,
    keywords: str | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    priority: Priority | None = None,
    since: str | None = None,
    user: User = Depends(current_user),
) -> dict:
    keyword_list = split_csv(keywords) or list(DEFAULT_KEYWORDS)
    since_dt = parse_since(since)

    resolved = await resolve_posts(request, disaster_id, keyword_list, limit)

    posts = [enrich_post(p, disaster_id) for p in resolved.value]
    if priority is not None:
        posts = [p for p in posts if p["priority"] == priority]
    if since_dt is not None:
        posts = [
            p for p in posts if is_since(p.get("timestamp") or p.get("created_at"), since_dt)
        ]
    posts = posts[:limit]

    await request.app.state.bus.emit(
        "social_media_updated",
        topic=disaster_id,
        action="refresh",
        data={
            "disaster_id": disaster_id,
            "new_posts": posts[:5],
            "total_count": len(posts),
        },
    )
    logger.info(
        "social media served",
        disaster_id=disaster_id,
        count=len(posts),
        provenance=resolved.provenance,
    )
    return {
        "disaster_id": disaster_id,
        "data": posts,
        "meta": meta_envelope(
            resolved,
            total_count=len(posts),
            keywords=keyword_list,
            priority_filter=priority,
            since=since,
        ),
    }


@router.get("/{disaster_id}/social-media/priority")
async def social_media_by_priority(
    request: Request,
    disaster_id: str,
    level: Literal["all", "critical", "high", "normal", "low"] = "all",
    user: User = Depends(current_user),
) -> dict:
    resolved = await resolve_posts(request, disaster_id, list(DEFAULT_KEYWORDS), 100)
    buckets = bucket_by_priority(resolved.value)
    data = buckets if level == "all" else {level: buckets[level]}
    return {
        "disaster_id": disaster_id,
        "priority_level": level,
        "data": data,
        "meta": meta_envelope(
            resolved,
            total_posts=sum(len(v) for v in data.values()),
            levels=list(PRIORITY_LEVELS) if level == "all" else [level],
            timestamp=utc_now_iso(),
        ),
    }

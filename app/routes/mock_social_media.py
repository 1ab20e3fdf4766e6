from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query

from app.params import split_csv
from mockdata import fixtures
from normalize.priority import classify_priority, post_text
from normalize.timeutil import utc_now_iso


router = APIRouter(prefix="/api/mock-social-media", tags=["mock-social-media"])


@router.get("")
def mock_feed(
    keywords: str | None = None,
    limit: int = Query(default=10, ge=1),
    priority: Literal["critical", "high", "normal", "low"] | None = None,
) -> dict:
    keyword_list = split_csv(keywords)
    posts = [
        {**p, "priority": classify_priority(post_text(p))}
        for p in fixtures.feed_posts(keyword_list)
    ]
    if priority is not None:
        posts = [p for p in posts if p["priority"] == priority]
    posts = [fixtures.restamp_feed_post(p) for p in posts[: min(limit, 50)]]
    return {
        "posts": posts,
        "meta": {
            "total_count": len(posts),
            "keywords": keyword_list,
            "priority_filter": priority,
            "source": "mock_api",
            "timestamp": utc_now_iso(),
        },
    }


@router.get("/trending")
def trending() -> dict:
    return {
        "trending": fixtures.trending(),
        "updated_at": utc_now_iso(),
        "source": "mock_api",
    }

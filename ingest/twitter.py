from __future__ import annotations

import httpx
import structlog

from ingest.errors import AdapterError, expect_dict, expect_list


logger = structlog.get_logger(__name__)

TWITTER_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"

_TIMEOUT = httpx.Timeout(connect=5.0, read=15.0, write=5.0, pool=5.0)

_MALFORMED = "twitter_malformed_payload"


def _normalize_tweet(raw: object, users: dict[str, dict]) -> dict:
    tweet = expect_dict(raw, _MALFORMED)
    if "id" not in tweet:
        raise AdapterError(_MALFORMED)
    author_id = str(tweet.get("author_id") or "")
    author = users.get(author_id) or {}
    metrics = expect_dict(tweet.get("public_metrics") or {}, _MALFORMED)
    username = author.get("username")
    return {
        "id": str(tweet["id"]),
        "user": author_id or None,
        "username": f"@{username}" if username else None,
        "content": str(tweet.get("text") or ""),
        "timestamp": tweet.get("created_at"),
        "source": "twitter_api",
        "engagement": {
            "likes": int(metrics.get("like_count") or 0),
            "retweets": int(metrics.get("retweet_count") or 0),
            "replies": int(metrics.get("reply_count") or 0),
        },
    }


class TwitterClient:
    def __init__(self, client: httpx.AsyncClient, *, bearer_token: str | None) -> None:
        self._client = client
        self._bearer_token = bearer_token

    @property
    def configured(self) -> bool:
        return bool(self._bearer_token)

    async def search_recent(self, keywords: list[str], limit: int) -> list[dict]:
        if not self._bearer_token:
            raise AdapterError("twitter not configured")
        # The recent-search API accepts 10..100 results per page.
        max_results = min(max(limit, 10), 100)
        response = await self._client.get(
            TWITTER_SEARCH_URL,
            params={
                "query": " OR ".join(keywords),
                "max_results": max_results,
                "tweet.fields": "created_at,author_id,public_metrics,context_annotations",
                "user.fields": "username,name,verified",
                "expansions": "author_id",
            },
            headers={"Authorization": f"Bearer {self._bearer_token}"},
            timeout=_TIMEOUT,
        )
        if response.status_code != 200:
            raise AdapterError(f"twitter_http_{response.status_code}")
        payload = expect_dict(response.json(), _MALFORMED)
        includes = expect_dict(payload.get("includes") or {}, _MALFORMED)
        users: dict[str, dict] = {}
        for raw in expect_list(includes.get("users"), _MALFORMED):
            user = expect_dict(raw, _MALFORMED)
            users[str(user.get("id"))] = user
        tweets = expect_list(payload.get("data"), _MALFORMED)
        posts = [_normalize_tweet(t, users) for t in tweets]
        logger.info("tweets fetched", count=len(posts))
        return posts

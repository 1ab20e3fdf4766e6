from __future__ import annotations

import re

from normalize.timeutil import utc_now_iso


PRIORITY_LEVELS = ("critical", "high", "normal", "low")

# Checked in this order; the first tier with a substring hit wins.
PRIORITY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "critical",
        ("urgent", "emergency", "sos", "help", "trapped", "evacuation", "immediate"),
    ),
    ("high", ("breaking", "alert", "warning", "danger", "rescue")),
    ("normal", ("shelter", "food", "water", "medical", "assistance")),
)

_HASHTAG_RE = re.compile(r"#(\w+)", flags=re.UNICODE)

_STREET_RE = re.compile(
    r"(?:in|at|on|near)\s+([A-Z][a-zA-Z\s]+?(?:Street|St|Avenue|Ave|Road|Rd"
    r"|Boulevard|Blvd|Manhattan|Brooklyn|Queens|Bronx))\b",
    flags=re.IGNORECASE,
)
_BOROUGH_RE = re.compile(
    r"\b(Manhattan|Brooklyn|Queens|Bronx|Staten Island)\b", flags=re.IGNORECASE
)
_NYC_SUFFIX_RE = re.compile(r"([A-Z][a-zA-Z\s]+),\s*(?:NYC|New York)")


def classify_priority(text: str) -> str:
    lowered = text.casefold()
    for level, keywords in PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return level
    return "low"


def extract_hashtags(text: str) -> list[str]:
    return _HASHTAG_RE.findall(text)


def extract_location_mention(text: str) -> str | None:
    for pattern in (_STREET_RE, _BOROUGH_RE, _NYC_SUFFIX_RE):
        match = pattern.search(text)
        if match is not None:
            return match.group(1).strip()
    return None


def post_text(post: dict) -> str:
    return str(post.get("content") or post.get("text") or post.get("post") or "")


def enrich_post(post: dict, disaster_id: str) -> dict:
    text = post_text(post)
    return {
        **post,
        "priority": classify_priority(text),
        "hashtags": post.get("hashtags") or extract_hashtags(text),
        "extracted_location": post.get("location") or extract_location_mention(text),
        "disaster_id": disaster_id,
        "processed_at": utc_now_iso(),
    }


def bucket_by_priority(posts: list[dict]) -> dict[str, list[dict]]:
    buckets: dict[str, list[dict]] = {level: [] for level in PRIORITY_LEVELS}
    for post in posts:
        level = classify_priority(post_text(post))
        buckets[level].append({**post, "priority": level})
    return buckets

from __future__ import annotations

from email.utils import parsedate_to_datetime

import feedparser

from normalize.timeutil import to_iso


def _rfc822_to_iso(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return to_iso(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        return None


def parse_rss(data: bytes) -> list[dict]:
    parsed = feedparser.parse(data)
    records: list[dict] = []
    for entry in parsed.entries:
        content = None
        if "content" in entry and entry["content"]:
            content = entry["content"][0].get("value")

        records.append(
            {
                "id": entry.get("id") or entry.get("guid") or entry.get("link"),
                "link": entry.get("link"),
                "title": str(entry.get("title", "")).strip(),
                "summary": str(entry.get("summary", "")).strip(),
                "content": content,
                "published": _rfc822_to_iso(entry.get("published")),
                "updated": _rfc822_to_iso(entry.get("updated")),
            }
        )
    return records

from __future__ import annotations

import asyncio
from urllib.parse import urljoin

import httpx
import structlog
from bs4 import BeautifulSoup

from ingest.errors import AdapterError
from ingest.fetch import fetch_ok
from ingest.parsers.rss import parse_rss
from ingest.sources import OfficialSource
from normalize.timeutil import utc_now, utc_now_iso


logger = structlog.get_logger(__name__)

MAX_CONTENT_CHARS = 500

SCRAPE_TIMEOUT = httpx.Timeout(connect=5.0, read=10.0, write=5.0, pool=5.0)


def _truncate(text: str) -> str:
    if len(text) > MAX_CONTENT_CHARS:
        return text[:MAX_CONTENT_CHARS] + "..."
    return text


def _update_id(source: OfficialSource, index: int, stamp: int) -> str:
    return f"{source.source_id}_{index}_{stamp}"


def _base_update(source: OfficialSource) -> dict:
    return {
        "source_id": source.source_id,
        "source": source.name,
        "priority": source.priority,
        "tags": list(source.tags),
        "author": source.author,
        "type": source.update_type,
    }


def parse_html_updates(data: bytes, source: OfficialSource) -> list[dict]:
    selectors = source.selectors
    item_selector = selectors.get("item")
    if not item_selector:
        raise AdapterError(f"no item selector for {source.source_id}")

    soup = BeautifulSoup(data, "html.parser")
    stamp = int(utc_now().timestamp() * 1000)
    now = utc_now_iso()
    updates: list[dict] = []
    for index, element in enumerate(soup.select(item_selector)):

        def text_of(key: str) -> str:
            selector = selectors.get(key)
            if not selector:
                return ""
            found = element.select_one(selector)
            return found.get_text(" ", strip=True) if found is not None else ""

        title = text_of("title")
        content = text_of("content")
        if not title or not content:
            continue
        link = element.select_one(selectors.get("link") or "a")
        href = link.get("href") if link is not None else None
        updates.append(
            {
                **_base_update(source),
                "id": _update_id(source, index, stamp),
                "title": title,
                "content": _truncate(content),
                "url": urljoin(source.base_url, str(href)) if href else source.base_url,
                "published_at": text_of("date") or now,
            }
        )
    return updates


def updates_from_rss(data: bytes, source: OfficialSource) -> list[dict]:
    stamp = int(utc_now().timestamp() * 1000)
    now = utc_now_iso()
    updates: list[dict] = []
    for index, record in enumerate(parse_rss(data)):
        title = record["title"]
        content = record["summary"] or record["content"] or ""
        if not title or not content:
            continue
        updates.append(
            {
                **_base_update(source),
                "id": _update_id(source, index, stamp),
                "title": title,
                "content": _truncate(content),
                "url": record["link"] or source.base_url,
                "published_at": record["published"] or record["updated"] or now,
            }
        )
    return updates


async def scrape_source(
    client: httpx.AsyncClient, source: OfficialSource, *, user_agent: str
) -> list[dict]:
    if not source.scrapable:
        raise AdapterError(f"source {source.source_id} is not scrapable")
    body, _headers = await fetch_ok(
        client, url=source.url, user_agent=user_agent, timeout=SCRAPE_TIMEOUT
    )
    if source.kind == "rss":
        return updates_from_rss(body, source)
    return parse_html_updates(body, source)


async def collect_updates(
    client: httpx.AsyncClient,
    sources: list[OfficialSource],
    *,
    user_agent: str,
) -> tuple[list[dict], list[str], dict[str, str]]:
    """Scrape every scrapable source concurrently.

    Returns the collected updates, the ids attempted and a reason per source
    that failed. One failing source never hides the others.
    """
    targets = [s for s in sources if s.scrapable]
    results = await asyncio.gather(
        *(scrape_source(client, s, user_agent=user_agent) for s in targets),
        return_exceptions=True,
    )

    updates: list[dict] = []
    errors: dict[str, str] = {}
    for source, result in zip(targets, results):
        if isinstance(result, (AdapterError, httpx.HTTPError)):
            logger.warning("source scrape failed", source=source.source_id, error=str(result))
            errors[source.source_id] = str(result)
            continue
        if isinstance(result, Exception):
            logger.error(
                "source scrape crashed", source=source.source_id, exc_info=result
            )
            errors[source.source_id] = f"{result.__class__.__name__}:{result}"
            continue
        if isinstance(result, BaseException):
            raise result
        logger.info("source scraped", source=source.source_id, count=len(result))
        updates.extend(result)
    return updates, [s.source_id for s in targets], errors

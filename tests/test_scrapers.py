import asyncio
from dataclasses import replace
from pathlib import Path

import httpx
import pytest

from ingest.scrapers import (
    MAX_CONTENT_CHARS,
    collect_updates,
    parse_html_updates,
    updates_from_rss,
)
from ingest.sources import load_official_sources


ROOT = Path(__file__).resolve().parents[1]
FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _sources() -> dict:
    return {s.source_id: s for s in load_official_sources(ROOT / "feeds" / "official_sources.yaml")}


def test_catalogue_loads_all_sources() -> None:
    sources = _sources()
    assert set(sources) == {"fema", "redcross", "nws", "nyc_em"}
    assert sources["fema"].selectors["item"] == ".disaster-item"
    assert sources["nws"].kind == "rss"
    assert sources["nyc_em"].scrapable is False
    assert sources["fema"].public_info()["url"] == "https://www.fema.gov"


def test_missing_catalogue_is_empty(tmp_path) -> None:
    assert load_official_sources(tmp_path / "none.yaml") == []


def test_invalid_catalogue_is_rejected(tmp_path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- id: x\n  name: X\n  kind: ftp\n  url: http://x\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_official_sources(path)


def test_html_updates_use_selectors_and_skip_incomplete_items() -> None:
    fema = _sources()["fema"]
    updates = parse_html_updates((FIXTURES / "fema.html").read_bytes(), fema)

    assert [u["title"] for u in updates] == [
        "Hurricane Response Update",
        "Flood Declaration Approved",
    ]
    first = updates[0]
    assert first["url"] == "https://www.fema.gov/disaster/4821"
    assert first["published_at"] == "2025-06-21T10:00:00Z"
    assert first["source"] == "FEMA"
    assert first["priority"] == "high"
    assert first["type"] == "official_announcement"
    assert updates[1]["url"] == "https://www.fema.gov/disaster/4822"


def test_long_content_is_truncated() -> None:
    fema = _sources()["fema"]
    body = (
        '<div class="disaster-item"><h3 class="disaster-title">T</h3>'
        f'<p class="disaster-description">{"x" * 900}</p></div>'
    ).encode()
    [update] = parse_html_updates(body, fema)
    assert len(update["content"]) == MAX_CONTENT_CHARS + 3
    assert update["content"].endswith("...")
    assert update["url"] == "https://www.fema.gov"


def test_rss_updates() -> None:
    nws = _sources()["nws"]
    [update] = updates_from_rss((FIXTURES / "sample.rss.xml").read_bytes(), nws)
    assert update["title"] == "Flash Flood Warning"
    assert update["url"] == "https://www.weather.gov/okx/ffw"
    assert update["published_at"] == "2025-06-21T14:30:00Z"
    assert update["source_id"] == "nws"


def test_collect_updates_survives_a_failing_source() -> None:
    sources = _sources()
    html = (FIXTURES / "fema.html").read_bytes()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "www.fema.gov":
            return httpx.Response(200, content=html)
        return httpx.Response(503)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await collect_updates(
                client,
                [sources["fema"], sources["redcross"], sources["nyc_em"]],
                user_agent="test",
            )

    updates, attempted, errors = asyncio.run(run())
    assert attempted == ["fema", "redcross"]
    assert len(updates) == 2
    assert set(errors) == {"redcross"}
    assert errors["redcross"].startswith("http_503")


def test_rss_source_without_items_yields_nothing() -> None:
    nws = replace(_sources()["nws"], url="https://example.com/empty.xml")
    assert updates_from_rss(b"<rss><channel></channel></rss>", nws) == []


def test_collect_updates_records_unexpected_source_errors() -> None:
    sources = _sources()
    html = (FIXTURES / "fema.html").read_bytes()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "www.fema.gov":
            return httpx.Response(200, content=html)
        raise RuntimeError("transport exploded")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await collect_updates(
                client, [sources["fema"], sources["redcross"]], user_agent="test"
            )

    updates, attempted, errors = asyncio.run(run())
    assert attempted == ["fema", "redcross"]
    assert [u["source_id"] for u in updates] == ["fema", "fema"]
    assert errors == {"redcross": "RuntimeError:transport exploded"}

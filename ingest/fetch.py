from __future__ import annotations

import time

import httpx

from ingest.errors import AdapterError


DEFAULT_TIMEOUT = httpx.Timeout(connect=5.0, read=15.0, write=5.0, pool=5.0)


async def fetch(
    client: httpx.AsyncClient,
    *,
    url: str,
    user_agent: str,
    accept: str = "text/html, application/xml, application/rss+xml, text/xml, */*",
    extra_headers: dict[str, str] | None = None,
    timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
) -> tuple[int, bytes | None, dict[str, str], int]:
    headers = {"User-Agent": user_agent, "Accept": accept}
    if extra_headers:
        headers.update(extra_headers)

    started = time.monotonic()
    response = await client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
    elapsed_ms = int((time.monotonic() - started) * 1000)
    return (
        response.status_code,
        (response.content if response.status_code == 200 else None),
        dict(response.headers),
        elapsed_ms,
    )


async def fetch_ok(
    client: httpx.AsyncClient,
    *,
    url: str,
    user_agent: str,
    accept: str = "text/html, application/xml, application/rss+xml, text/xml, */*",
    timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
) -> tuple[bytes, dict[str, str]]:
    status, body, headers, _elapsed_ms = await fetch(
        client, url=url, user_agent=user_agent, accept=accept, timeout=timeout
    )
    if status != 200 or body is None:
        raise AdapterError(f"http_{status}:{url}")
    return body, headers

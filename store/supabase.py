"""Primary store client.

The managed Postgres/PostGIS instance is reached through its REST gateway
(PostgREST conventions: ``/rest/v1/<table>`` for rows and
``/rest/v1/rpc/<function>`` for stored procedures). Every method either
returns parsed rows or raises :class:`StoreError`; deciding what to do about a
failure is left to the caller.
"""

from __future__ import annotations

from typing import Any

import httpx

from ingest.errors import AdapterError


_TIMEOUT = httpx.Timeout(connect=5.0, read=10.0, write=5.0, pool=5.0)


class StoreError(AdapterError):
    pass


def eq(value: object) -> str:
    return f"eq.{value}"


def contains(values: list[str]) -> str:
    inner = ",".join(f'"{v}"' for v in values)
    return f"cs.{{{inner}}}"


def lt(value: object) -> str:
    return f"lt.{value}"


def _rows(payload: object) -> list[dict]:
    if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
        raise StoreError("store_malformed_payload")
    return payload


class SupabaseClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str | None,
        key: str | None,
    ) -> None:
        self._client = client
        self._base = url.rstrip("/") + "/rest/v1" if url else None
        self._key = key

    @property
    def configured(self) -> bool:
        return self._base is not None and bool(self._key)

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._key or "",
            "Authorization": f"Bearer {self._key or ''}",
            "Accept": "application/json",
        }
        if prefer is not None:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if not self.configured:
            raise StoreError("store not configured")
        try:
            response = await self._client.request(
                method,
                f"{self._base}/{path}",
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=_TIMEOUT,
            )
        except httpx.HTTPError as e:
            raise StoreError(f"store_request_error:{e.__class__.__name__}") from e

        if response.status_code >= 300:
            raise StoreError(
                f"store_http_{response.status_code}:{response.text[:200]}"
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreError("store_malformed_payload") from e

    async def select(
        self,
        table: str,
        *,
        filters: dict[str, str] | None = None,
        columns: str = "*",
        order: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict]:
        params: dict[str, str] = {"select": columns}
        if filters:
            params.update(filters)
        if order is not None:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        if offset is not None:
            params["offset"] = str(offset)
        return _rows(await self._request("GET", table, params=params))

    async def select_one(
        self, table: str, *, filters: dict[str, str], columns: str = "*"
    ) -> dict | None:
        rows = await self.select(table, filters=filters, columns=columns, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, row: dict) -> dict:
        rows = await self._request(
            "POST", table, json=[row], prefer="return=representation"
        )
        if not rows:
            raise StoreError("store_insert_returned_nothing")
        return _rows(rows)[0]

    async def upsert(self, table: str, row: dict) -> None:
        await self._request(
            "POST",
            table,
            json=[row],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def update(
        self, table: str, values: dict, *, filters: dict[str, str]
    ) -> list[dict]:
        rows = await self._request(
            "PATCH", table, params=filters, json=values, prefer="return=representation"
        )
        return rows if isinstance(rows, list) else []

    async def delete(self, table: str, *, filters: dict[str, str]) -> list[dict]:
        rows = await self._request(
            "DELETE", table, params=filters, prefer="return=representation"
        )
        return rows if isinstance(rows, list) else []

    async def rpc(self, function: str, args: dict) -> list[dict]:
        rows = await self._request("POST", f"rpc/{function}", json=args)
        if rows is None:
            return []
        return _rows(rows)

"""Forward and reverse geocoding over the keyed and keyless providers.

Providers are tried in a fixed order. A provider that errors or returns no
result is skipped; only when all of them come back empty does the call fail.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from urllib.parse import quote

import httpx
import structlog

from ingest.errors import AdapterError, expect_dict, expect_list


logger = structlog.get_logger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
MAPBOX_GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"
NOMINATIM_URL = "https://nominatim.openstreetmap.org"

_GOOGLE_MALFORMED = "google_maps_malformed_payload"
_MAPBOX_MALFORMED = "mapbox_malformed_payload"
_NOMINATIM_MALFORMED = "nominatim_malformed_payload"

_TIMEOUT = httpx.Timeout(connect=5.0, read=10.0, write=5.0, pool=5.0)

_Provider = Callable[[], Awaitable[dict | None]]


class Geocoder:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        user_agent: str,
        google_api_key: str | None = None,
        mapbox_api_key: str | None = None,
    ) -> None:
        self._client = client
        self._user_agent = user_agent
        self._google_api_key = google_api_key
        self._mapbox_api_key = mapbox_api_key

    async def _get_json(self, url: str, params: dict) -> object:
        response = await self._client.get(
            url,
            params=params,
            headers={"User-Agent": self._user_agent, "Accept": "application/json"},
            timeout=_TIMEOUT,
        )
        if response.status_code != 200:
            raise AdapterError(f"geocoder_http_{response.status_code}")
        return response.json()

    async def _first(self, providers: list[tuple[str, _Provider]], subject: str) -> dict:
        errors: list[str] = []
        for name, provider in providers:
            try:
                result = await provider()
            except (AdapterError, httpx.HTTPError, KeyError, ValueError, TypeError) as exc:
                logger.warning("geocoder failed", provider=name, subject=subject, error=str(exc))
                errors.append(f"{name}:{exc}")
                continue
            if result is not None:
                logger.info("geocoded", provider=name, subject=subject)
                return result
            errors.append(f"{name}:no_result")
        raise AdapterError("geocoding_failed:" + ",".join(errors))

    async def forward(self, location_name: str) -> dict:
        providers: list[tuple[str, _Provider]] = []
        if self._google_api_key:
            providers.append(("google_maps", lambda: self._google_forward(location_name)))
        if self._mapbox_api_key:
            providers.append(("mapbox", lambda: self._mapbox_forward(location_name)))
        providers.append(("nominatim", lambda: self._nominatim_forward(location_name)))
        return await self._first(providers, location_name)

    async def reverse(self, lat: float, lng: float) -> dict:
        providers: list[tuple[str, _Provider]] = []
        if self._google_api_key:
            providers.append(("google_maps", lambda: self._google_reverse(lat, lng)))
        providers.append(("nominatim", lambda: self._nominatim_reverse(lat, lng)))
        return await self._first(providers, f"{lat},{lng}")

    async def _google_forward(self, location_name: str) -> dict | None:
        data = await self._get_json(
            GOOGLE_GEOCODE_URL, {"address": location_name, "key": self._google_api_key}
        )
        results = expect_list(
            expect_dict(data, _GOOGLE_MALFORMED).get("results"), _GOOGLE_MALFORMED
        )
        if not results:
            return None
        first = expect_dict(results[0], _GOOGLE_MALFORMED)
        geometry = expect_dict(first.get("geometry"), _GOOGLE_MALFORMED)
        location = expect_dict(geometry.get("location"), _GOOGLE_MALFORMED)
        return {
            "lat": float(location["lat"]),
            "lng": float(location["lng"]),
            "formatted_address": first.get("formatted_address") or location_name,
            "source": "google_maps",
        }

    async def _mapbox_forward(self, location_name: str) -> dict | None:
        data = await self._get_json(
            f"{MAPBOX_GEOCODE_URL}/{quote(location_name, safe='')}.json",
            {"access_token": self._mapbox_api_key, "limit": 1},
        )
        features = expect_list(
            expect_dict(data, _MAPBOX_MALFORMED).get("features"), _MAPBOX_MALFORMED
        )
        if not features:
            return None
        first = expect_dict(features[0], _MAPBOX_MALFORMED)
        lng, lat = expect_list(first.get("center"), _MAPBOX_MALFORMED)
        return {
            "lat": float(lat),
            "lng": float(lng),
            "formatted_address": first.get("place_name") or location_name,
            "source": "mapbox",
        }

    async def _nominatim_forward(self, location_name: str) -> dict | None:
        data = await self._get_json(
            f"{NOMINATIM_URL}/search",
            {"q": location_name, "format": "json", "limit": 1},
        )
        results = expect_list(data, _NOMINATIM_MALFORMED)
        if not results:
            return None
        first = expect_dict(results[0], _NOMINATIM_MALFORMED)
        return {
            "lat": float(first["lat"]),
            "lng": float(first["lon"]),
            "formatted_address": first.get("display_name") or location_name,
            "source": "nominatim",
        }

    async def _google_reverse(self, lat: float, lng: float) -> dict | None:
        data = await self._get_json(
            GOOGLE_GEOCODE_URL, {"latlng": f"{lat},{lng}", "key": self._google_api_key}
        )
        results = expect_list(
            expect_dict(data, _GOOGLE_MALFORMED).get("results"), _GOOGLE_MALFORMED
        )
        if not results:
            return None
        first = expect_dict(results[0], _GOOGLE_MALFORMED)
        return {
            "formatted_address": first["formatted_address"],
            "components": first.get("address_components") or [],
            "source": "google_maps",
        }

    async def _nominatim_reverse(self, lat: float, lng: float) -> dict | None:
        data = await self._get_json(
            f"{NOMINATIM_URL}/reverse", {"lat": lat, "lon": lng, "format": "json"}
        )
        place = expect_dict(data, _NOMINATIM_MALFORMED)
        if not place.get("display_name"):
            return None
        return {"formatted_address": place["display_name"], "source": "nominatim"}

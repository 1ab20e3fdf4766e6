from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request

from app.auth import User, current_user
from app.errors import ApiError
from app.fallback import capture, meta_envelope, resolve
from app.params import parse_coordinate
from app.schemas import GeocodeRequest
from geo.locations import mock_extract_location, mock_geocode
from normalize.timeutil import utc_now_iso
from store.cache import GEOCODING_TTL, LOCATION_EXTRACTION_TTL, make_cache_key


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/geocode", tags=["geocoding"])


@router.post("")
async def geocode(
    request: Request, body: GeocodeRequest, user: User = Depends(current_user)
) -> dict:
    state = request.app.state
    text = (body.text or "").strip()
    location_name = (body.location_name or "").strip()
    if not text and not location_name:
        raise ApiError(
            400,
            "Missing required field",
            'Either "text" or "location_name" is required',
        )

    meta: dict = {}
    if text:
        extraction = await resolve(
            state.cache,
            key=make_cache_key("location_extraction", text),
            ttl_seconds=LOCATION_EXTRACTION_TTL,
            primary=lambda: capture(
                lambda: state.gemini.extract_location(text), source="gemini"
            ),
            fallback=lambda reason: mock_extract_location(text),
            fallback_source="mock_extraction",
        )
        meta["extraction"] = meta_envelope(extraction)
        location_name = extraction.value or ""

    if not location_name:
        raise ApiError(
            400,
            "Location extraction failed",
            "Could not extract location from provided text",
        )

    name = location_name
    geocoded = await resolve(
        state.cache,
        key=make_cache_key("geocoding", name),
        ttl_seconds=GEOCODING_TTL,
        primary=lambda: capture(lambda: state.geocoder.forward(name), source="geocoder"),
        fallback=lambda reason: mock_geocode(name),
        fallback_source="mock",
    )
    meta["geocoding"] = meta_envelope(geocoded)

    coordinates = geocoded.value
    logger.info(
        "geocoding completed",
        location=name,
        lat=coordinates.get("lat"),
        lng=coordinates.get("lng"),
        provenance=geocoded.provenance,
    )
    return {
        "original_text": body.text,
        "extracted_location": name,
        "coordinates": coordinates,
        "meta": meta,
        "timestamp": utc_now_iso(),
    }


@router.get("/reverse")
async def reverse_geocode(
    request: Request,
    lat: str | None = None,
    lng: str | None = None,
    user: User = Depends(current_user),
) -> dict:
    if not lat or not lng:
        raise ApiError(
            400,
            "Missing required parameters",
            'Both "lat" and "lng" query parameters are required',
        )
    latitude = parse_coordinate(lat, name="lat")
    longitude = parse_coordinate(lng, name="lng")

    state = request.app.state

    def fallback(reason: str) -> dict:
        return {
            "formatted_address": f"Location at {latitude}, {longitude}",
            "source": "fallback",
            "fallback_reason": reason,
        }

    resolved = await resolve(
        state.cache,
        key=make_cache_key("reverse_geocoding", {"lat": latitude, "lng": longitude}),
        ttl_seconds=GEOCODING_TTL,
        primary=lambda: capture(
            lambda: state.geocoder.reverse(latitude, longitude), source="geocoder"
        ),
        fallback=fallback,
        fallback_source="fallback",
    )
    return {
        "coordinates": {"lat": latitude, "lng": longitude},
        "location": resolved.value,
        "meta": meta_envelope(resolved),
        "timestamp": utc_now_iso(),
    }

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, Request

from app.auth import User, current_user
from app.errors import ApiError
from app.fallback import (
    Outcome,
    accept,
    capture,
    meta_envelope,
    resolve,
    substitute,
)
from app.params import parse_coordinate
from app.schemas import ResourceCreate, ResourceUpdate
from geo.distance import filter_within_radius, sort_by_distance
from geo.points import point_to_geojson, point_to_wkt
from mockdata import fixtures
from normalize.timeutil import utc_now_iso
from store.cache import RESOURCES_TTL, make_cache_key
from store.supabase import eq


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["resources"])

STORE_SOURCE = "supabase"


def _with_distance_km(row: dict) -> dict:
    meters = row.get("distance_meters")
    if meters is None or "distance_km" in row:
        return row
    return {**row, "distance_km": round(float(meters) / 1000.0, 2)}


async def _fetch_resources(
    request: Request,
    disaster_id: str,
    *,
    center: tuple[float, float] | None,
    radius_km: float,
    resource_type: str | None,
    status: str,
    limit: int,
) -> list[dict]:
    store = request.app.state.store
    if center is None:
        filters = {"disaster_id": eq(disaster_id), "status": eq(status)}
        if resource_type:
            filters["type"] = eq(resource_type)
        return await store.select(
            "resources", filters=filters, order="created_at.desc", limit=limit
        )

    lat, lng = center
    rows = await store.rpc(
        "find_nearby_resources",
        {
            "disaster_id": disaster_id,
            "center_lat": lat,
            "center_lng": lng,
            "radius_meters": int(radius_km * 1000),
        },
    )
    rows = [
        _with_distance_km(r)
        for r in rows
        if r.get("status") == status
        and (resource_type is None or r.get("type") == resource_type)
    ]
    return sort_by_distance(rows)[:limit]


def _mock_resources(
    disaster_id: str,
    *,
    center: tuple[float, float] | None,
    radius_km: float,
    resource_type: str | None,
    status: str,
    limit: int,
) -> list[dict]:
    rows = [
        r
        for r in fixtures.resources(disaster_id)
        if r["status"] == status and (resource_type is None or r["type"] == resource_type)
    ]
    if center is not None:
        rows = filter_within_radius(rows, center[0], center[1], radius_km)
    return rows[:limit]


@router.get("/{disaster_id}/resources")
async def list_resources(
    request: Request,
    disaster_id: str,
    lat: str | None = None,
    lng: str | None = None,
    radius: float = Query(default=10.0, gt=0),
    type: str | None = None,
    status: str = "active",
    limit: int = Query(default=50, ge=1, le=500),
    user: User = Depends(current_user),
) -> dict:
    center: tuple[float, float] | None = None
    if lat or lng:
        if not lat or not lng:
            raise ApiError(
                400, "Invalid coordinates", "Both lat and lng must be valid numbers"
            )
        center = (parse_coordinate(lat, name="lat"), parse_coordinate(lng, name="lng"))

    options = {
        "center": center,
        "radius_km": radius,
        "resource_type": type,
        "status": status,
        "limit": limit,
    }
    resolved = await resolve(
        request.app.state.cache,
        key=make_cache_key(
            "resources",
            {
                "disaster_id": disaster_id,
                "lat": center[0] if center else None,
                "lng": center[1] if center else None,
                "radius": radius,
                "type": type,
                "status": status,
                "limit": limit,
            },
        ),
        ttl_seconds=RESOURCES_TTL,
        primary=lambda: capture(
            lambda: _fetch_resources(request, disaster_id, **options),
            source=STORE_SOURCE,
        ),
        fallback=lambda reason: _mock_resources(disaster_id, **options),
    )

    center_location = {"lat": center[0], "lng": center[1]} if center else None
    await request.app.state.bus.emit(
        "resources_updated",
        topic=disaster_id,
        action="refresh",
        data={
            "disaster_id": disaster_id,
            "resource_count": len(resolved.value),
            "center_location": center_location,
            "radius_km": radius,
        },
    )
    return {
        "disaster_id": disaster_id,
        "data": resolved.value,
        "meta": meta_envelope(
            resolved,
            total_count=len(resolved.value),
            filters={
                "location": center_location,
                "radius_km": radius,
                "type": type,
                "status": status,
            },
        ),
    }


@router.get("/{disaster_id}/resources/types")
async def resource_types(
    request: Request, disaster_id: str, user: User = Depends(current_user)
) -> dict:
    store = request.app.state.store
    outcome = await capture(
        lambda: store.select(
            "resources",
            filters={"disaster_id": eq(disaster_id)},
            columns="type,capacity,current_occupancy",
        ),
        source=STORE_SOURCE,
    )
    if outcome.ok:
        resolved = accept(outcome)
    else:
        resolved = substitute(fixtures.resources(disaster_id), reason=outcome.error)

    by_type: dict[str, dict] = {}
    for row in resolved.value:
        entry = by_type.setdefault(
            str(row.get("type")),
            {"type": str(row.get("type")), "count": 0, "available_capacity": 0},
        )
        entry["count"] += 1
        entry["available_capacity"] += int(row.get("capacity") or 0) - int(
            row.get("current_occupancy") or 0
        )

    return {
        "disaster_id": disaster_id,
        "resource_types": list(by_type.values()),
        "meta": meta_envelope(resolved),
        "timestamp": utc_now_iso(),
    }


@router.post("/{disaster_id}/resources", status_code=201)
async def create_resource(
    request: Request,
    disaster_id: str,
    body: ResourceCreate,
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    record = {
        "disaster_id": disaster_id,
        "name": body.name,
        "location_name": body.location_name,
        "type": body.type,
        "capacity": body.capacity or 0,
        "current_occupancy": body.current_occupancy,
        "contact": body.contact or "",
        "amenities": body.amenities,
        "status": body.status,
        "created_by": user.user_id,
    }
    row = dict(record)
    if body.location is not None:
        row["location"] = point_to_wkt(body.location.lat, body.location.lng)

    outcome = await capture(lambda: store.insert("resources", row), source=STORE_SOURCE)
    if outcome.ok:
        resolved = accept(outcome)
    else:
        resolved = substitute(
            {
                **record,
                "id": fixtures.synthetic_id(),
                "created_at": utc_now_iso(),
                "location": point_to_geojson(body.location.lat, body.location.lng)
                if body.location is not None
                else None,
            },
            reason=outcome.error,
        )

    logger.info(
        "resource created",
        disaster_id=disaster_id,
        user_id=user.user_id,
        provenance=resolved.provenance,
    )
    await request.app.state.bus.emit(
        "resources_updated", topic=disaster_id, action="create", data=resolved.value
    )
    return {"data": resolved.value, "meta": meta_envelope(resolved)}


@router.put("/{disaster_id}/resources/{resource_id}")
async def update_resource(
    request: Request,
    disaster_id: str,
    resource_id: str,
    body: ResourceUpdate,
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    values = body.model_dump(exclude_none=True, exclude={"location"})
    if body.location is not None:
        values["location"] = point_to_wkt(body.location.lat, body.location.lng)
    if not values:
        raise ApiError(400, "Validation failed", "No updatable fields provided")
    values["updated_at"] = utc_now_iso()

    outcome = await capture(
        lambda: store.update(
            "resources",
            values,
            filters={"id": eq(resource_id), "disaster_id": eq(disaster_id)},
        ),
        source=STORE_SOURCE,
    )
    if outcome.ok:
        if not outcome.value:
            raise ApiError(
                404,
                "Resource not found or could not be updated",
                resource_id=resource_id,
            )
        resolved = accept(Outcome.success(outcome.value[0], source=STORE_SOURCE))
    else:
        existing = fixtures.find_resource(disaster_id, resource_id)
        if existing is None:
            raise ApiError(
                404,
                "Resource not found or could not be updated",
                resource_id=resource_id,
            )
        merged = {**existing, **values}
        if body.location is not None:
            merged["location"] = point_to_geojson(body.location.lat, body.location.lng)
        resolved = substitute(merged, reason=outcome.error)

    logger.info(
        "resource updated",
        disaster_id=disaster_id,
        resource_id=resource_id,
        user_id=user.user_id,
        provenance=resolved.provenance,
    )
    await request.app.state.bus.emit(
        "resources_updated", topic=disaster_id, action="update", data=resolved.value
    )
    return {"data": resolved.value, "meta": meta_envelope(resolved)}

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.auth import User, current_user, require_role
from app.errors import ApiError
from app.fallback import (
    Outcome,
    accept,
    capture,
    meta_envelope,
    substitute,
)
from app.schemas import DisasterCreate, DisasterUpdate
from geo.points import point_to_geojson, point_to_wkt
from mockdata import fixtures
from normalize.timeutil import utc_now_iso
from store.supabase import contains, eq


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["disasters"])

STORE_SOURCE = "supabase"


async def _emit(request: Request, action: str, data: dict) -> None:
    await request.app.state.bus.emit(
        "disaster_updated", topic=str(data.get("id")), action=action, data=data
    )


async def _load_disaster(request: Request, disaster_id: str) -> tuple[dict, bool]:
    """Return the disaster and whether it came from the primary store."""
    store = request.app.state.store
    outcome = await capture(
        lambda: store.select_one("disasters", filters={"id": eq(disaster_id)}),
        source=STORE_SOURCE,
    )
    if outcome.ok:
        if outcome.value is None:
            raise ApiError(404, "Disaster not found", id=disaster_id)
        return outcome.value, True

    mock = fixtures.find_disaster(disaster_id)
    if mock is None:
        raise ApiError(404, "Disaster not found", id=disaster_id)
    return mock, False


@router.get("")
async def list_disasters(
    request: Request,
    tag: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    filters = {"tags": contains([tag])} if tag else None
    outcome = await capture(
        lambda: store.select(
            "disasters",
            filters=filters,
            order="created_at.desc",
            limit=limit,
            offset=offset,
        ),
        source=STORE_SOURCE,
    )
    if outcome.ok:
        resolved = accept(outcome)
    else:
        resolved = substitute(
            fixtures.disasters(tag)[offset : offset + limit], reason=outcome.error
        )

    logger.info("disasters listed", user_id=user.user_id, count=len(resolved.value))
    return {
        "data": resolved.value,
        "count": len(resolved.value),
        "meta": meta_envelope(
            resolved, filters={"tag": tag}, limit=limit, offset=offset
        ),
    }


@router.get("/{disaster_id}")
async def get_disaster(
    request: Request, disaster_id: str, user: User = Depends(current_user)
) -> dict:
    disaster, from_store = await _load_disaster(request, disaster_id)
    return {
        "data": disaster,
        "meta": {
            "source": STORE_SOURCE if from_store else "mock_data",
            "provenance": "primary" if from_store else "synthetic",
            "last_updated": utc_now_iso(),
        },
    }


@router.post("", status_code=201)
async def create_disaster(
    request: Request, body: DisasterCreate, user: User = Depends(current_user)
) -> dict:
    store = request.app.state.store
    now = utc_now_iso()
    record = {
        "title": body.title,
        "location_name": body.location_name,
        "description": body.description,
        "tags": body.tags,
        "owner_id": user.user_id,
        "audit_trail": [{"action": "create", "user_id": user.user_id, "timestamp": now}],
    }
    row = dict(record)
    if body.location is not None:
        row["location"] = point_to_wkt(body.location.lat, body.location.lng)

    outcome = await capture(lambda: store.insert("disasters", row), source=STORE_SOURCE)
    if outcome.ok:
        resolved = accept(outcome)
    else:
        resolved = substitute(
            {
                **record,
                "id": fixtures.synthetic_id(),
                "created_at": now,
                "location": point_to_geojson(body.location.lat, body.location.lng)
                if body.location is not None
                else None,
            },
            reason=outcome.error,
        )

    logger.info(
        "disaster created",
        disaster_id=resolved.value.get("id"),
        user_id=user.user_id,
        provenance=resolved.provenance,
    )
    await _emit(request, "create", resolved.value)
    return {"data": resolved.value, "meta": meta_envelope(resolved)}


@router.put("/{disaster_id}")
async def update_disaster(
    request: Request,
    disaster_id: str,
    body: DisasterUpdate,
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    existing, from_store = await _load_disaster(request, disaster_id)
    if existing.get("owner_id") != user.user_id and not user.is_admin:
        raise ApiError(
            403, "Insufficient permissions", "You can only update your own disasters"
        )

    changes = body.model_dump(exclude_none=True)
    values = {k: v for k, v in changes.items() if k != "location"}
    if body.location is not None:
        values["location"] = point_to_wkt(body.location.lat, body.location.lng)
    audit_entry = {
        "action": "update",
        "user_id": user.user_id,
        "timestamp": utc_now_iso(),
        "changes": sorted(changes),
    }
    values["audit_trail"] = [*(existing.get("audit_trail") or []), audit_entry]

    if from_store:
        outcome = await capture(
            lambda: store.update("disasters", values, filters={"id": eq(disaster_id)}),
            source=STORE_SOURCE,
        )
    else:
        outcome = None

    if outcome is not None and outcome.ok:
        if not outcome.value:
            raise ApiError(404, "Disaster not found", id=disaster_id)
        resolved = accept(Outcome.success(outcome.value[0], source=STORE_SOURCE))
    else:
        merged = {**existing, **values}
        if body.location is not None:
            merged["location"] = point_to_geojson(body.location.lat, body.location.lng)
        merged["updated_at"] = audit_entry["timestamp"]
        reason = outcome.error if outcome is not None else "store_unavailable"
        resolved = substitute(merged, reason=reason)

    logger.info(
        "disaster updated",
        disaster_id=disaster_id,
        user_id=user.user_id,
        provenance=resolved.provenance,
    )
    await _emit(request, "update", resolved.value)
    return {"data": resolved.value, "meta": meta_envelope(resolved)}


@router.delete("/{disaster_id}")
async def delete_disaster(
    request: Request,
    disaster_id: str,
    user: User = Depends(require_role("admin")),
) -> JSONResponse:
    store = request.app.state.store
    outcome = await capture(
        lambda: store.delete("disasters", filters={"id": eq(disaster_id)}),
        source=STORE_SOURCE,
    )
    if outcome.ok:
        if not outcome.value:
            raise ApiError(
                404, "Disaster not found or could not be deleted", id=disaster_id
            )
        resolved = accept(Outcome.success(outcome.value[0], source=STORE_SOURCE))
    else:
        mock = fixtures.find_disaster(disaster_id)
        if mock is None:
            raise ApiError(
                404, "Disaster not found or could not be deleted", id=disaster_id
            )
        resolved = substitute(mock, reason=outcome.error)

    logger.info(
        "disaster deleted",
        disaster_id=disaster_id,
        user_id=user.user_id,
        provenance=resolved.provenance,
    )
    await _emit(request, "delete", {"id": disaster_id})
    return JSONResponse(
        {
            "message": "Disaster deleted successfully",
            "data": resolved.value,
            "meta": meta_envelope(resolved),
        }
    )

from __future__ import annotations

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query, Request

from app.auth import User, current_user
from app.fallback import accept, capture, meta_envelope, substitute
from app.schemas import ReportCreate
from geo.points import point_to_geojson, point_to_wkt
from mockdata import fixtures
from normalize.priority import classify_priority
from normalize.timeutil import utc_now_iso
from store.supabase import eq


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["reports"])

ReportStatus = Literal["pending", "verified", "rejected"]
Priority = Literal["critical", "high", "normal", "low"]


@router.get("/{disaster_id}/reports")
async def list_reports(
    request: Request,
    disaster_id: str,
    status: ReportStatus | None = None,
    priority: Priority | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    filters = {"disaster_id": eq(disaster_id)}
    if status:
        filters["verification_status"] = eq(status)
    if priority:
        filters["priority"] = eq(priority)

    outcome = await capture(
        lambda: store.select(
            "reports", filters=filters, order="created_at.desc", limit=limit
        ),
        source="supabase",
    )
    if outcome.ok:
        resolved = accept(outcome)
    else:
        reports = [
            r
            for r in fixtures.reports(disaster_id)
            if (status is None or r["verification_status"] == status)
            and (priority is None or r["priority"] == priority)
        ]
        resolved = substitute(reports[:limit], reason=outcome.error)

    return {
        "disaster_id": disaster_id,
        "data": resolved.value,
        "meta": meta_envelope(
            resolved,
            total_count=len(resolved.value),
            filters={"status": status, "priority": priority},
        ),
    }


@router.post("/{disaster_id}/reports", status_code=201)
async def create_report(
    request: Request,
    disaster_id: str,
    body: ReportCreate,
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    record = {
        "disaster_id": disaster_id,
        "user_id": user.user_id,
        "content": body.content,
        "image_url": body.image_url,
        "location_name": body.location_name,
        "verification_status": "pending",
        "priority": classify_priority(body.content),
    }
    row = dict(record)
    if body.location is not None:
        row["location"] = point_to_wkt(body.location.lat, body.location.lng)

    outcome = await capture(lambda: store.insert("reports", row), source="supabase")
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
        "report created",
        disaster_id=disaster_id,
        user_id=user.user_id,
        priority=record["priority"],
        provenance=resolved.provenance,
    )
    await request.app.state.bus.emit(
        "reports_updated", topic=disaster_id, action="create", data=resolved.value
    )
    return {"data": resolved.value, "meta": meta_envelope(resolved)}

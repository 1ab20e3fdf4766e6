from __future__ import annotations

import asyncio
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query, Request

from app.auth import User, current_user
from app.fallback import (
    Resolved,
    accept,
    capture,
    meta_envelope,
    resolve,
    substitute,
)
from app.schemas import VerifyImageRequest, VerifyImagesRequest
from mockdata import fixtures
from normalize.timeutil import utc_now_iso
from normalize.verification import VERIFICATION_STATUSES, summarize_verifications
from store.cache import IMAGE_VERIFICATION_TTL, make_cache_key
from store.supabase import eq


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/disasters", tags=["verification"])


async def verify_one(request: Request, image_url: str) -> Resolved[dict]:
    state = request.app.state

    def fallback(reason: str) -> dict:
        return {**fixtures.mock_verification(image_url), "fallback_reason": reason}

    return await resolve(
        state.cache,
        key=make_cache_key("image_verification", image_url),
        ttl_seconds=IMAGE_VERIFICATION_TTL,
        primary=lambda: capture(
            lambda: state.gemini.verify_image(image_url), source="gemini_vision"
        ),
        fallback=fallback,
    )


async def _record(request: Request, disaster_id: str, user: User, result: dict) -> None:
    store = request.app.state.store
    row = {
        "disaster_id": disaster_id,
        "image_url": result.get("image_url"),
        "status": result.get("status"),
        "authenticity_score": result.get("authenticity_score"),
        "confidence": result.get("confidence"),
        "flags": result.get("flags") or [],
        "analysis": result.get("analysis"),
        "verification_method": result.get("verification_method"),
        "verified_by": user.user_id,
        "verified_at": result.get("verified_at") or utc_now_iso(),
    }
    # Best effort; a failed write is logged by capture and otherwise ignored.
    await capture(lambda: store.insert("verifications", row), source="supabase")


@router.post("/{disaster_id}/verify-image")
async def verify_image(
    request: Request,
    disaster_id: str,
    body: VerifyImageRequest,
    user: User = Depends(current_user),
) -> dict:
    resolved = await verify_one(request, body.image_url)
    await _record(request, disaster_id, user, resolved.value)
    logger.info(
        "image verification completed",
        image_url=body.image_url,
        status=resolved.value.get("status"),
        score=resolved.value.get("authenticity_score"),
        provenance=resolved.provenance,
    )
    return {
        "disaster_id": disaster_id,
        "verification": resolved.value,
        "verified_by": user.user_id,
        "meta": meta_envelope(resolved),
        "timestamp": utc_now_iso(),
    }


@router.post("/{disaster_id}/verify-images")
async def verify_images(
    request: Request,
    disaster_id: str,
    body: VerifyImagesRequest,
    user: User = Depends(current_user),
) -> dict:
    logger.info("bulk verification", disaster_id=disaster_id, count=len(body.image_urls))
    resolved = await asyncio.gather(*(verify_one(request, u) for u in body.image_urls))
    results = [r.value for r in resolved]
    await asyncio.gather(*(_record(request, disaster_id, user, r) for r in results))
    return {
        "disaster_id": disaster_id,
        "verifications": results,
        "summary": summarize_verifications(results),
        "verified_by": user.user_id,
        "meta": {
            "synthetic_count": sum(1 for r in resolved if r.synthetic),
            "cached_count": sum(1 for r in resolved if r.cached),
            "last_updated": utc_now_iso(),
        },
        "timestamp": utc_now_iso(),
    }


@router.get("/{disaster_id}/verifications")
async def verification_history(
    request: Request,
    disaster_id: str,
    status: Literal["authentic", "suspicious", "fake"] | None = None,
    confidence: Literal["high", "medium", "low"] | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    user: User = Depends(current_user),
) -> dict:
    store = request.app.state.store
    filters = {"disaster_id": eq(disaster_id)}
    if status:
        filters["status"] = eq(status)
    if confidence:
        filters["confidence"] = eq(confidence)

    outcome = await capture(
        lambda: store.select(
            "verifications", filters=filters, order="verified_at.desc", limit=limit
        ),
        source="supabase",
    )
    if outcome.ok:
        resolved = accept(outcome)
    else:
        history = [
            v
            for v in fixtures.verification_history(disaster_id)
            if (status is None or v["status"] == status)
            and (confidence is None or v["confidence"] == confidence)
        ]
        resolved = substitute(history[:limit], reason=outcome.error)

    history = resolved.value
    scores = [float(v.get("authenticity_score") or 0.0) for v in history]
    summary = {
        "total_verifications": len(history),
        "by_status": {
            s: sum(1 for v in history if v.get("status") == s) for s in VERIFICATION_STATUSES
        },
        "average_score": round(sum(scores) / len(scores), 3) if scores else 0.0,
    }
    return {
        "disaster_id": disaster_id,
        "verifications": history,
        "summary": summary,
        "filters": {"status": status, "confidence": confidence},
        "meta": meta_envelope(resolved),
        "timestamp": utc_now_iso(),
    }

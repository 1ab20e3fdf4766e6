from __future__ import annotations

from datetime import datetime

from app.settings import Settings
from normalize.timeutil import to_iso, utc_now
from realtime.bus import EventBus


def health_snapshot(
    settings: Settings,
    *,
    started_at: datetime,
    bus: EventBus,
    now: datetime | None = None,
) -> dict:
    now = now or utc_now()
    return {
        "status": "healthy",
        "timestamp": to_iso(now),
        "started_at": to_iso(started_at),
        "uptime_seconds": round(max(0.0, (now - started_at).total_seconds()), 3),
        "environment": settings.app_env,
        "store_configured": settings.store_configured,
        "cache_backend": settings.cache_backend,
        "integrations": {
            "gemini": bool(settings.gemini_api_key),
            "google_maps": bool(settings.google_maps_api_key),
            "mapbox": bool(settings.mapbox_api_key),
            "twitter": bool(settings.twitter_bearer_token),
        },
        "realtime_subscribers": bus.subscriber_count,
    }

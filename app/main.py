from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.errors import install_error_handlers
from app.log_config import configure_logging
from app.ratelimit import RateLimitMiddleware
from app.routes import (
    disasters,
    geocoding,
    mock_social_media,
    official_updates,
    reports,
    resources,
    social_media,
    verification,
)
from app.settings import Settings
from health.health import health_snapshot
from ingest.gemini import GeminiClient
from ingest.geocoders import Geocoder
from ingest.sources import load_official_sources
from ingest.twitter import TwitterClient
from realtime.bus import EventBus
from realtime.ws import router as ws_router
from store.cache import (
    CacheBackend,
    CacheStore,
    SqliteCacheBackend,
    StoreCacheBackend,
    run_cache_sweeper,
)
from store.db import open_database
from store.supabase import SupabaseClient


logger = structlog.get_logger(__name__)

API_ENDPOINTS = {
    "disasters": "/api/disasters",
    "reports": "/api/disasters/:id/reports",
    "geocoding": "/api/geocode",
    "social_media": "/api/disasters/:id/social-media",
    "resources": "/api/disasters/:id/resources",
    "official_updates": "/api/disasters/:id/official-updates",
    "verification": "/api/disasters/:id/verify-image",
    "mock_social_media": "/api/mock-social-media",
    "websocket": "/ws",
}


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http = httpx.AsyncClient(
            transport=transport, headers={"User-Agent": settings.user_agent}
        )
        store = SupabaseClient(http, url=settings.supabase_url, key=settings.supabase_key)

        db = None
        backend: CacheBackend
        if settings.cache_backend == "sqlite":
            db = open_database(settings.cache_db_path)
            backend = SqliteCacheBackend(db)
        else:
            backend = StoreCacheBackend(store)
        cache = CacheStore(backend, default_ttl_seconds=settings.cache_default_ttl_seconds)

        app.state.settings = settings
        app.state.started_at = datetime.now(tz=UTC)
        app.state.http = http
        app.state.store = store
        app.state.cache = cache
        app.state.bus = EventBus()
        app.state.gemini = GeminiClient(
            http,
            api_key=settings.gemini_api_key,
            text_model=settings.gemini_text_model,
            vision_model=settings.gemini_vision_model,
            user_agent=settings.user_agent,
        )
        app.state.geocoder = Geocoder(
            http,
            user_agent=settings.user_agent,
            google_api_key=settings.google_maps_api_key,
            mapbox_api_key=settings.mapbox_api_key,
        )
        app.state.twitter = TwitterClient(http, bearer_token=settings.twitter_bearer_token)
        app.state.official_sources = load_official_sources(settings.official_sources_path)

        sweeper_task = None
        if settings.cache_sweep_interval_seconds > 0:
            sweeper_task = asyncio.create_task(
                run_cache_sweeper(cache, settings.cache_sweep_interval_seconds)
            )

        logger.info(
            "service started",
            environment=settings.app_env,
            store_configured=settings.store_configured,
            cache_backend=settings.cache_backend,
            official_sources=len(app.state.official_sources),
        )
        try:
            yield
        finally:
            if sweeper_task is not None:
                sweeper_task.cancel()
                with suppress(asyncio.CancelledError):
                    await sweeper_task
            await http.aclose()
            if db is not None:
                db.close()
            logger.info("service stopped")

    app = FastAPI(title="Disaster Response Coordination API", lifespan=lifespan)
    install_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for module in (
        disasters,
        reports,
        geocoding,
        social_media,
        mock_social_media,
        resources,
        official_updates,
        verification,
    ):
        app.include_router(module.router)
    app.include_router(ws_router)

    @app.get("/")
    def index() -> dict:
        return {
            "message": "Disaster Response Coordination API",
            "status": "active",
            "environment": settings.app_env,
            "endpoints": API_ENDPOINTS,
        }

    @app.get("/health")
    def health(request: Request) -> dict:
        return health_snapshot(
            settings, started_at=request.app.state.started_at, bus=request.app.state.bus
        )

    return app


app = create_app()

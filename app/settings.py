from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    app_env: str = Field(default="development", validation_alias="APP_ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    client_url: str = Field(
        default="http://localhost:3000", validation_alias="CLIENT_URL"
    )
    user_agent: str = Field(
        default="DisasterResponsePlatform/1.0", validation_alias="USER_AGENT"
    )

    supabase_url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_key: str | None = Field(
        default=None, validation_alias="SUPABASE_ANON_KEY"
    )

    cache_backend: Literal["store", "sqlite"] = Field(
        default="store", validation_alias="CACHE_BACKEND"
    )
    cache_db_path: Path = Field(
        default=Path("data/cache.db"), validation_alias="CACHE_DB_PATH"
    )
    cache_default_ttl_seconds: int = Field(default=3600, validation_alias="CACHE_TTL")
    cache_sweep_interval_seconds: int = Field(
        default=0, validation_alias="CACHE_SWEEP_INTERVAL_SECONDS"
    )

    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_text_model: str = Field(
        default="gemini-1.5-flash", validation_alias="GEMINI_TEXT_MODEL"
    )
    gemini_vision_model: str = Field(
        default="gemini-1.5-flash", validation_alias="GEMINI_VISION_MODEL"
    )

    google_maps_api_key: str | None = Field(
        default=None, validation_alias="GOOGLE_MAPS_API_KEY"
    )
    mapbox_api_key: str | None = Field(default=None, validation_alias="MAPBOX_API_KEY")

    twitter_bearer_token: str | None = Field(
        default=None, validation_alias="TWITTER_BEARER_TOKEN"
    )

    rate_limit_max_requests: int = Field(
        default=100, validation_alias="RATE_LIMIT_MAX_REQUESTS"
    )
    rate_limit_window_seconds: int = Field(
        default=15 * 60, validation_alias="RATE_LIMIT_WINDOW_SECONDS"
    )

    official_sources_path: Path = Field(
        default=Path(__file__).resolve().parents[1] / "feeds" / "official_sources.yaml",
        validation_alias="OFFICIAL_SOURCES_PATH",
    )

    @property
    def expose_error_details(self) -> bool:
        return self.app_env == "development"

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

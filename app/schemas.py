from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and len(value) > len("https://")


class LatLng(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class DisasterCreate(BaseModel):
    title: str = Field(min_length=1)
    location_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    location: LatLng | None = None


class DisasterUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    location_name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    location: LatLng | None = None


class ReportCreate(BaseModel):
    content: str = Field(min_length=1)
    image_url: str | None = None
    location_name: str | None = None
    location: LatLng | None = None


class GeocodeRequest(BaseModel):
    text: str | None = None
    location_name: str | None = None


class ResourceCreate(BaseModel):
    name: str = Field(min_length=1)
    location_name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    location: LatLng | None = None
    capacity: int | None = Field(default=None, ge=0)
    current_occupancy: int = Field(default=0, ge=0)
    contact: str | None = None
    amenities: list[str] = Field(default_factory=list)
    status: str = "active"


class ResourceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    location_name: str | None = Field(default=None, min_length=1)
    type: str | None = Field(default=None, min_length=1)
    location: LatLng | None = None
    capacity: int | None = Field(default=None, ge=0)
    current_occupancy: int | None = Field(default=None, ge=0)
    contact: str | None = None
    amenities: list[str] | None = None
    status: str | None = None


class VerifyImageRequest(BaseModel):
    image_url: str = Field(min_length=1)

    @field_validator("image_url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not _is_http_url(value):
            raise ValueError("image_url must be an http(s) URL")
        return value


class VerifyImagesRequest(BaseModel):
    image_urls: list[str] = Field(min_length=1, max_length=10)

    @field_validator("image_urls")
    @classmethod
    def _http_urls(cls, value: list[str]) -> list[str]:
        bad = [u for u in value if not _is_http_url(u)]
        if bad:
            raise ValueError(f"invalid image URLs: {', '.join(bad)}")
        return value

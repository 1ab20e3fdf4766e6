from __future__ import annotations

import math
from datetime import datetime

from app.errors import ApiError
from normalize.timeutil import parse_iso


def split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_since(since: str | None) -> datetime | None:
    if not since:
        return None
    try:
        return parse_iso(since)
    except ValueError as e:
        raise ApiError(
            400, "Invalid parameter", "since must be an ISO-8601 timestamp", field="since"
        ) from e


def is_since(value: object, since: datetime) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        return parse_iso(value) >= since
    except ValueError:
        return False


def parse_coordinate(raw: str, *, name: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ApiError(
            400, "Invalid coordinates", "Latitude and longitude must be valid numbers"
        ) from e
    if not math.isfinite(value):
        raise ApiError(
            400, "Invalid coordinates", f"{name} must be a finite number"
        )
    return value

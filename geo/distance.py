from __future__ import annotations

import math
from collections.abc import Iterable

from geo.points import point_from_value


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    r = 6371.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * r * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def filter_within_radius(
    items: Iterable[dict], lat: float, lng: float, radius_km: float
) -> list[dict]:
    """Keep items whose ``location`` lies within ``radius_km`` of the center.

    Each kept item gets a ``distance_km`` (rounded to 10 m) and the result is
    ordered nearest first. Items without a usable point are dropped.
    """
    kept: list[tuple[float, dict]] = []
    for item in items:
        point = point_from_value(item.get("location"))
        if point is None:
            continue
        item_lat, item_lng = point
        distance = haversine_km(lat, lng, item_lat, item_lng)
        if distance > radius_km:
            continue
        kept.append((distance, {**item, "distance_km": round(distance, 2)}))
    kept.sort(key=lambda pair: pair[0])
    return [item for _, item in kept]


def sort_by_distance(items: list[dict]) -> list[dict]:
    return sorted(items, key=lambda item: float(item.get("distance_km") or 0.0))

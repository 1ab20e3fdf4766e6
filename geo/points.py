from __future__ import annotations

import re


_WKT_POINT_RE = re.compile(
    r"^(?:SRID=\d+;)?\s*POINT\s*\(\s*(?P<lng>-?\d+(?:\.\d+)?)\s+(?P<lat>-?\d+(?:\.\d+)?)\s*\)$",
    flags=re.IGNORECASE,
)


def point_to_wkt(lat: float, lng: float) -> str:
    return f"POINT({lng} {lat})"


def point_to_geojson(lat: float, lng: float) -> dict:
    return {"type": "Point", "coordinates": [lng, lat]}


def point_from_value(value: object) -> tuple[float, float] | None:
    """Read a (lat, lng) pair from GeoJSON, WKT or a ``{lat, lng}`` mapping."""
    if value is None:
        return None
    if isinstance(value, dict):
        if value.get("type") == "Point":
            coords = value.get("coordinates") or []
            if len(coords) >= 2:
                return (float(coords[1]), float(coords[0]))
            return None
        if "lat" in value and "lng" in value:
            return (float(value["lat"]), float(value["lng"]))
        return None
    if isinstance(value, str):
        match = _WKT_POINT_RE.match(value.strip())
        if match is None:
            return None
        return (float(match.group("lat")), float(match.group("lng")))
    return None

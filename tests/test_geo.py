import pytest

from geo.distance import filter_within_radius, haversine_km
from geo.locations import mock_extract_location, mock_geocode
from geo.points import point_from_value, point_to_wkt


def test_haversine_known_distance() -> None:
    # Manhattan to Los Angeles, roughly 3936 km.
    d = haversine_km(40.7128, -74.0060, 34.0522, -118.2437)
    assert d == pytest.approx(3936, rel=0.01)
    assert haversine_km(1.0, 2.0, 1.0, 2.0) == 0.0


def test_filter_within_radius_keeps_orders_and_annotates() -> None:
    items = [
        {"id": "far", "location": {"type": "Point", "coordinates": [-73.9735, 40.7676]}},
        {"id": "la", "location": {"type": "Point", "coordinates": [-118.4912, 34.0195]}},
        {"id": "near", "location": "POINT(-74.0070 40.7050)"},
        {"id": "nowhere", "location": None},
    ]
    kept = filter_within_radius(items, 40.7128, -74.0060, 10)
    assert [i["id"] for i in kept] == ["near", "far"]
    assert all(i["distance_km"] <= 10 for i in kept)
    assert kept[0]["distance_km"] <= kept[1]["distance_km"]


def test_point_parsing() -> None:
    assert point_from_value({"type": "Point", "coordinates": [-74.0, 40.0]}) == (40.0, -74.0)
    assert point_from_value("SRID=4326;POINT(-74.5 40.25)") == (40.25, -74.5)
    assert point_from_value({"lat": 1, "lng": 2}) == (1.0, 2.0)
    assert point_from_value("garbage") is None
    assert point_to_wkt(40.7, -74.0) == "POINT(-74.0 40.7)"


def test_mock_extraction_finds_city_state() -> None:
    assert mock_extract_location("Flooding reported in Houston, TX tonight") == "Houston, TX"


def test_mock_extraction_default_is_stable() -> None:
    text = "no place mentioned here at all"
    assert mock_extract_location(text) == mock_extract_location(text)


def test_mock_geocode_matches_gazetteer_and_defaults() -> None:
    la = mock_geocode("los angeles, ca")
    assert (la["lat"], la["lng"]) == (34.0522, -118.2437)
    assert la["source"] == "mock"
    unknown = mock_geocode("Atlantis")
    assert (unknown["lat"], unknown["lng"]) == (40.7128, -74.0060)
    assert unknown["formatted_address"] == "Atlantis"

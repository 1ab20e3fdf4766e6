from datetime import UTC, datetime, timedelta, timezone

from normalize.timeutil import parse_iso, to_iso, utc_now_iso


def test_parse_iso_accepts_z_offsets_and_naive_values() -> None:
    expected = datetime(2025, 6, 21, 10, 0, tzinfo=UTC)
    assert parse_iso("2025-06-21T10:00:00Z") == expected
    assert parse_iso("2025-06-21T10:00:00") == expected
    assert parse_iso("2025-06-21T12:00:00+02:00") == expected


def test_to_iso_renders_utc_with_z() -> None:
    local = datetime(2025, 6, 21, 5, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert to_iso(local) == "2025-06-21T10:00:00Z"
    assert utc_now_iso().endswith("Z")

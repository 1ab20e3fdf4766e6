from normalize.priority import (
    bucket_by_priority,
    classify_priority,
    enrich_post,
    extract_hashtags,
    extract_location_mention,
)


def test_critical_keywords_win_over_lower_tiers() -> None:
    assert classify_priority("URGENT: need water and food") == "critical"
    assert classify_priority("SOS trapped on roof") == "critical"


def test_high_and_normal_tiers() -> None:
    assert classify_priority("Breaking: bridge closed") == "high"
    assert classify_priority("Rescue boats deployed") == "high"
    assert classify_priority("Shelter open on 5th") == "normal"


def test_no_keyword_is_low() -> None:
    assert classify_priority("Power restored downtown") == "low"
    assert classify_priority("") == "low"


def test_matching_is_a_substring_test() -> None:
    # "helpful" contains "help"
    assert classify_priority("Very helpful neighbours") == "critical"


def test_hashtags_and_location_mentions() -> None:
    text = "Need food on Water Street #floodrelief #NYC"
    assert extract_hashtags(text) == ["floodrelief", "NYC"]
    assert extract_location_mention(text) == "Water Street"
    assert extract_location_mention("Flooding across Brooklyn tonight") == "Brooklyn"
    assert extract_location_mention("nothing here") is None


def test_enrich_post_always_reclassifies() -> None:
    post = {"id": "1", "content": "Evacuation now", "priority": "low"}
    enriched = enrich_post(post, "7")
    assert enriched["priority"] == "critical"
    assert enriched["disaster_id"] == "7"
    assert enriched["processed_at"].endswith("Z")


def test_bucket_by_priority_covers_all_levels() -> None:
    buckets = bucket_by_priority(
        [{"content": "sos"}, {"post": "alert"}, {"text": "food"}, {"content": "sunny"}]
    )
    assert {k: len(v) for k, v in buckets.items()} == {
        "critical": 1,
        "high": 1,
        "normal": 1,
        "low": 1,
    }

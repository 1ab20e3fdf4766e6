from mockdata.fixtures import mock_verification
from normalize.verification import parse_verification_text, summarize_verifications


def test_high_score_is_authentic() -> None:
    result = parse_verification_text(
        "Authenticity assessment: 0.92. Flood water and buildings visible. High confidence.",
        "http://x/a.jpg",
    )
    assert result["status"] == "authentic"
    assert result["authenticity_score"] == 0.92
    assert result["confidence"] == "high"
    assert "water" in result["detected_objects"]
    assert result["context_match"] is True


def test_low_score_or_manipulation_is_fake() -> None:
    assert parse_verification_text("Authenticity: 0.2", "u")["status"] == "fake"
    result = parse_verification_text("Authenticity 0.9 but clearly edited", "u")
    assert result["status"] == "fake"
    assert "manipulation_detected" in result["flags"]


def test_middle_score_is_suspicious() -> None:
    result = parse_verification_text("Authenticity score 0.55", "u")
    assert result["status"] == "suspicious"
    assert result["flags"] == ["requires_review"]


def test_missing_score_defaults_and_clamps() -> None:
    assert parse_verification_text("looks fine", "u")["authenticity_score"] == 0.7
    assert parse_verification_text("authenticity 7", "u")["authenticity_score"] == 1.0


def test_summary_counts_sum_to_total() -> None:
    results = [mock_verification(f"http://example.com/{i}.jpg") for i in range(7)]
    summary = summarize_verifications(results)
    assert summary["total_verified"] == 7
    assert summary["authentic"] + summary["suspicious"] + summary["fake"] == 7
    assert 0.0 <= summary["average_authenticity_score"] <= 1.0


def test_summary_of_nothing() -> None:
    summary = summarize_verifications([])
    assert summary["total_verified"] == 0
    assert summary["average_authenticity_score"] == 0.0


def test_mock_verification_is_stable_per_url() -> None:
    a = mock_verification("http://example.com/flood.jpg")
    b = mock_verification("http://example.com/flood.jpg")
    assert a["status"] == b["status"]
    assert a["authenticity_score"] == b["authenticity_score"]
    assert a["verification_method"] == "mock"

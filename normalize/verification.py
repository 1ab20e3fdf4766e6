"""Turn a free-text model assessment into a structured verification record."""

from __future__ import annotations

import re

from normalize.timeutil import utc_now_iso


VERIFICATION_STATUSES = ("authentic", "suspicious", "fake")

_SCORE_RE = re.compile(r"authenticity.*?(\d+\.?\d*)", flags=re.IGNORECASE | re.DOTALL)

_COMMON_OBJECTS = (
    "water",
    "fire",
    "smoke",
    "building",
    "car",
    "tree",
    "person",
    "debris",
    "flood",
    "damage",
)
_DISASTER_WORDS = (
    "disaster",
    "emergency",
    "flood",
    "fire",
    "damage",
    "destruction",
    "evacuation",
)

VERIFICATION_PROMPT = """Analyze this image for authenticity and disaster context. Please provide:

1. Authenticity assessment (scale 0-1, where 1 is definitely authentic)
2. Whether this appears to be a genuine disaster-related image
3. Any signs of digital manipulation or editing
4. What objects/elements you can identify in the image
5. Whether the image context matches what would be expected in a real disaster scenario
6. Overall confidence level in your assessment

Please respond in a structured format addressing each point."""


def parse_verification_text(text: str, image_url: str) -> dict:
    match = _SCORE_RE.search(text)
    score = float(match.group(1)) if match else 0.7
    score = min(max(score, 0.0), 1.0)

    lowered = text.casefold()
    status = "authentic"
    confidence = "medium"
    flags: list[str] = []

    if score < 0.4 or any(w in lowered for w in ("manipulated", "edited", "fake")):
        status = "fake"
        confidence = "high"
        flags.append("manipulation_detected")
    elif score < 0.7 or "suspicious" in lowered or "uncertain" in lowered:
        status = "suspicious"
        flags.append("requires_review")

    if "high confidence" in lowered or "very confident" in lowered:
        confidence = "high"
    elif "low confidence" in lowered or "uncertain" in lowered:
        confidence = "low"

    return {
        "image_url": image_url,
        "authenticity_score": score,
        "status": status,
        "analysis": text,
        "confidence": confidence,
        "flags": flags,
        "detected_objects": [o for o in _COMMON_OBJECTS if o in lowered],
        "context_match": any(w in lowered for w in _DISASTER_WORDS),
        "verified_at": utc_now_iso(),
        "verification_method": "gemini_vision",
    }


def summarize_verifications(results: list[dict]) -> dict:
    total = len(results)
    counts = {status: 0 for status in VERIFICATION_STATUSES}
    for result in results:
        status = result.get("status")
        if status in counts:
            counts[status] += 1
    scores = [float(r.get("authenticity_score") or 0.0) for r in results]
    return {
        "total_verified": total,
        **counts,
        "average_authenticity_score": round(sum(scores) / total, 3) if total else 0.0,
        "high_confidence": sum(1 for r in results if r.get("confidence") == "high"),
    }

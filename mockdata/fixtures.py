"""Hand-authored substitute payloads.

Every accessor returns fresh copies; callers may mutate what they get back
without affecting later requests.
"""

from __future__ import annotations

import copy
import random
import uuid
from datetime import timedelta

from normalize.timeutil import to_iso, utc_now


def _ago(minutes: float) -> str:
    return to_iso(utc_now() - timedelta(minutes=minutes))


def _point(lat: float, lng: float) -> dict:
    return {"type": "Point", "coordinates": [lng, lat]}


_DISASTERS = [
    {
        "id": "1",
        "title": "NYC Flood",
        "location_name": "Manhattan, NYC",
        "location": _point(40.7128, -74.0060),
        "description": "Heavy flooding in Manhattan area affecting multiple blocks",
        "tags": ["flood", "urgent"],
        "owner_id": "netrunnerX",
    },
    {
        "id": "2",
        "title": "California Wildfire",
        "location_name": "Los Angeles, CA",
        "location": _point(34.0522, -118.2437),
        "description": "Wildfire spreading rapidly in the hills near LA",
        "tags": ["wildfire", "evacuation"],
        "owner_id": "reliefAdmin",
    },
]

_RESOURCES = [
    {
        "id": "1",
        "disaster_id": "1",
        "name": "Red Cross Emergency Shelter",
        "location_name": "Lower East Side Community Center, NYC",
        "location": _point(40.7831, -73.9857),
        "type": "shelter",
        "capacity": 150,
        "current_occupancy": 45,
        "contact": "+1-555-0123",
        "amenities": ["food", "medical", "blankets", "charging_stations"],
        "status": "active",
    },
    {
        "id": "2",
        "disaster_id": "1",
        "name": "Manhattan General Hospital",
        "location_name": "Manhattan General Hospital, NYC",
        "location": _point(40.7831, -73.9776),
        "type": "medical",
        "capacity": 200,
        "current_occupancy": 120,
        "contact": "+1-555-0456",
        "amenities": ["emergency_care", "surgery", "pharmacy", "ambulance"],
        "status": "active",
    },
    {
        "id": "3",
        "disaster_id": "1",
        "name": "Food Distribution Center",
        "location_name": "Union Square, NYC",
        "location": _point(40.7359, -73.9903),
        "type": "food",
        "capacity": 500,
        "current_occupancy": 0,
        "contact": "+1-555-0789",
        "amenities": ["hot_meals", "water", "snacks", "baby_formula"],
        "status": "active",
    },
    {
        "id": "4",
        "disaster_id": "1",
        "name": "Emergency Supply Depot",
        "location_name": "Brooklyn Bridge Area, NYC",
        "location": _point(40.7061, -73.9969),
        "type": "supplies",
        "capacity": 1000,
        "current_occupancy": 300,
        "contact": "+1-555-0234",
        "amenities": ["blankets", "clothing", "hygiene_kits", "flashlights"],
        "status": "active",
    },
    {
        "id": "5",
        "disaster_id": "2",
        "name": "Evacuation Center West",
        "location_name": "Santa Monica, CA",
        "location": _point(34.0195, -118.4912),
        "type": "evacuation",
        "capacity": 300,
        "current_occupancy": 180,
        "contact": "+1-555-0567",
        "amenities": ["temporary_housing", "food", "medical", "pet_care"],
        "status": "active",
    },
    {
        "id": "6",
        "disaster_id": "1",
        "name": "Mobile Medical Unit #1",
        "location_name": "Central Park South, NYC",
        "location": _point(40.7676, -73.9735),
        "type": "medical",
        "capacity": 50,
        "current_occupancy": 15,
        "contact": "+1-555-0890",
        "amenities": ["first_aid", "medication", "triage"],
        "status": "active",
    },
]

_REPORTS = [
    {
        "id": "1",
        "disaster_id": "1",
        "user_id": "citizen1",
        "content": (
            "Flooding on Water Street reaching 3 feet. Several cars stranded. "
            "Need immediate assistance."
        ),
        "image_url": None,
        "verification_status": "pending",
        "location_name": "Water Street, NYC",
        "location": _point(40.7050, -74.0070),
        "priority": "high",
    },
    {
        "id": "2",
        "disaster_id": "1",
        "user_id": "volunteer1",
        "content": (
            "Shelter at community center is at capacity. "
            "Additional space needed urgently."
        ),
        "image_url": None,
        "verification_status": "verified",
        "location_name": "Lower East Side, NYC",
        "location": _point(40.7831, -73.9857),
        "priority": "critical",
    },
]

# (post, minutes ago)
_SOCIAL_POSTS: list[tuple[dict, int]] = [
    (
        {
            "id": "1",
            "user": "citizen1",
            "username": "@citizen_reporter",
            "content": (
                "#floodrelief Need food and water in Lower East Side Manhattan. "
                "Families stuck on 3rd floor. #NYC #emergency"
            ),
            "source": "twitter",
            "hashtags": ["floodrelief", "NYC", "emergency"],
            "location": "Lower East Side, Manhattan",
            "engagement": {"likes": 45, "retweets": 23, "replies": 12},
        },
        30,
    ),
    (
        {
            "id": "2",
            "user": "volunteer_helper",
            "username": "@volunteer_help",
            "content": (
                "Shelter available at Community Center on 42nd St. Can accommodate "
                "50 people. Hot meals provided. #disasterrelief #NYC"
            ),
            "source": "twitter",
            "hashtags": ["disasterrelief", "NYC"],
            "location": "42nd St, NYC",
            "engagement": {"likes": 78, "retweets": 34, "replies": 8},
        },
        45,
    ),
    (
        {
            "id": "3",
            "user": "emergency_responder",
            "username": "@emr_official",
            "content": (
                "URGENT: Evacuation notice for blocks 15-20 on Water Street. Please "
                "move to higher ground immediately. #evacuation #safety"
            ),
            "source": "twitter",
            "hashtags": ["evacuation", "safety"],
            "location": "Water Street, NYC",
            "engagement": {"likes": 156, "retweets": 89, "replies": 23},
        },
        15,
    ),
    (
        {
            "id": "4",
            "user": "local_news",
            "username": "@ny_news_live",
            "content": (
                "BREAKING: Flooding in Manhattan reaches 4 feet in some areas. MTA "
                "services suspended on Lines 4,5,6. Avoid downtown area."
            ),
            "source": "twitter",
            "hashtags": ["breaking", "flooding", "MTA"],
            "location": "Manhattan, NYC",
            "engagement": {"likes": 234, "retweets": 156, "replies": 45},
        },
        60,
    ),
    (
        {
            "id": "5",
            "user": "red_cross_ny",
            "username": "@RedCrossNY",
            "content": (
                "Medical assistance available at Roosevelt Hospital. Non-emergency "
                "cases please use alternate facilities. Staff on standby. "
                "#medical #help"
            ),
            "source": "twitter",
            "hashtags": ["medical", "help"],
            "location": "Roosevelt Hospital, NYC",
            "engagement": {"likes": 67, "retweets": 45, "replies": 12},
        },
        90,
    ),
]

_FEED_POSTS: list[tuple[dict, int]] = [
    (
        {
            "id": "mock_1",
            "post": (
                "#floodrelief Need food in NYC Lower East Side. Water level rising. "
                "#emergency #help"
            ),
            "user": "citizen1",
            "username": "@concerned_citizen",
            "location": "Lower East Side, NYC",
            "hashtags": ["floodrelief", "emergency", "help"],
            "engagement": {"likes": 15, "retweets": 8, "replies": 3},
        },
        0,
    ),
    (
        {
            "id": "mock_2",
            "post": (
                "Red Cross shelter open at 123 Main St. Hot food and blankets "
                "available. #disasterrelief #shelter"
            ),
            "user": "redcross_volunteer",
            "username": "@RC_Volunteer",
            "location": "Main St, NYC",
            "hashtags": ["disasterrelief", "shelter"],
            "engagement": {"likes": 42, "retweets": 18, "replies": 5},
        },
        30,
    ),
    (
        {
            "id": "mock_3",
            "post": (
                "Bridge on Water St is unsafe. Alternative routes: Broadway or FDR "
                "Drive. #safety #traffic #alert"
            ),
            "user": "traffic_alert",
            "username": "@NYTrafficAlert",
            "location": "Water St, NYC",
            "hashtags": ["safety", "traffic", "alert"],
            "engagement": {"likes": 67, "retweets": 45, "replies": 12},
        },
        15,
    ),
    (
        {
            "id": "mock_4",
            "post": (
                "Medical team stationed at Central Park. Free checkups for flood "
                "victims. #medical #healthcare #relief"
            ),
            "user": "medical_volunteer",
            "username": "@MedVolunteer",
            "location": "Central Park, NYC",
            "hashtags": ["medical", "healthcare", "relief"],
            "engagement": {"likes": 28, "retweets": 12, "replies": 7},
        },
        45,
    ),
    (
        {
            "id": "mock_5",
            "post": (
                "SOS! Family trapped on 4th floor, 456 Water St Apt 4B. Water too "
                "high to evacuate. Need rescue boat! #SOS #rescue"
            ),
            "user": "trapped_family",
            "username": "@HelpUs456",
            "location": "456 Water St, NYC",
            "hashtags": ["SOS", "rescue"],
            "engagement": {"likes": 89, "retweets": 67, "replies": 23},
        },
        10,
    ),
    (
        {
            "id": "mock_6",
            "post": (
                "Power restored to downtown area. Charging stations open at the "
                "Community Center. #power #update"
            ),
            "user": "power_company",
            "username": "@ConEd_Updates",
            "location": "Downtown NYC",
            "hashtags": ["power", "update"],
            "engagement": {"likes": 156, "retweets": 34, "replies": 8},
        },
        20,
    ),
]

TRENDING_HASHTAGS = [
    {"tag": "floodrelief", "count": 1250, "trend": "up"},
    {"tag": "emergency", "count": 890, "trend": "up"},
    {"tag": "NYC", "count": 2340, "trend": "stable"},
    {"tag": "help", "count": 567, "trend": "up"},
    {"tag": "safety", "count": 445, "trend": "down"},
    {"tag": "rescue", "count": 234, "trend": "up"},
    {"tag": "shelter", "count": 189, "trend": "stable"},
    {"tag": "medical", "count": 123, "trend": "up"},
]

# (update, minutes ago)
_OFFICIAL_UPDATES: list[tuple[dict, int]] = [
    (
        {
            "id": "1",
            "source_id": "fema",
            "source": "FEMA",
            "title": "Federal Emergency Declaration for NYC Flooding",
            "content": (
                "FEMA has declared a federal emergency for New York City due to "
                "severe flooding. Federal assistance is now available to supplement "
                "state and local response efforts."
            ),
            "url": "https://www.fema.gov/disaster/4618",
            "priority": "high",
            "tags": ["federal", "emergency", "assistance", "flooding"],
            "author": "FEMA Administrator",
            "type": "official_announcement",
        },
        120,
    ),
    (
        {
            "id": "2",
            "source_id": "nyc_em",
            "source": "NYC Emergency Management",
            "title": "Evacuation Orders for Lower Manhattan",
            "content": (
                "The New York City Emergency Management Department has issued "
                "evacuation orders for areas below 14th Street in Manhattan. "
                "Residents should move to higher ground immediately."
            ),
            "url": "https://www1.nyc.gov/site/em/index.page",
            "priority": "critical",
            "tags": ["evacuation", "manhattan", "safety"],
            "author": "NYC Emergency Management",
            "type": "evacuation_order",
        },
        90,
    ),
    (
        {
            "id": "3",
            "source_id": "redcross",
            "source": "Red Cross",
            "title": "Emergency Shelters Now Open",
            "content": (
                "The American Red Cross has opened emergency shelters across "
                "Manhattan and Brooklyn. Hot meals, blankets, and basic supplies are "
                "available. No advance registration required."
            ),
            "url": "https://www.redcross.org/get-help/disaster-relief-and-recovery-services",
            "priority": "normal",
            "tags": ["shelter", "relief", "supplies"],
            "author": "American Red Cross",
            "type": "resource_announcement",
        },
        60,
    ),
    (
        {
            "id": "4",
            "source_id": "mta",
            "source": "MTA",
            "title": "Subway Service Disruptions",
            "content": (
                "Due to flooding, subway lines 4, 5, 6, and L are suspended until "
                "further notice. Limited bus service is available. Please check MTA "
                "website for updates."
            ),
            "url": "https://new.mta.info/alerts",
            "priority": "high",
            "tags": ["transportation", "subway", "service"],
            "author": "MTA Operations",
            "type": "service_update",
        },
        45,
    ),
    (
        {
            "id": "5",
            "source_id": "nws",
            "source": "National Weather Service",
            "title": "Flash Flood Warning Extended",
            "content": (
                "Flash flood warning for New York City has been extended until 11 PM "
                "tonight. Additional 2-4 inches of rain expected. Avoid travel in "
                "low-lying areas."
            ),
            "url": "https://www.weather.gov/okx/",
            "priority": "high",
            "tags": ["weather", "flooding", "warning"],
            "author": "National Weather Service",
            "type": "weather_alert",
        },
        30,
    ),
    (
        {
            "id": "6",
            "source_id": "nyc_health",
            "source": "NYC Health Department",
            "title": "Water Safety Advisory",
            "content": (
                "Residents in affected areas should boil water for 3 minutes before "
                "drinking until further notice. Free bottled water available at "
                "community centers."
            ),
            "url": "https://www1.nyc.gov/site/doh/index.page",
            "priority": "normal",
            "tags": ["health", "water", "safety"],
            "author": "NYC Health Department",
            "type": "health_advisory",
        },
        20,
    ),
]

_VERIFICATION_RESULTS = [
    {
        "authenticity_score": 0.92,
        "status": "authentic",
        "analysis": (
            "Image shows genuine flood damage with consistent lighting and shadows. "
            "No signs of digital manipulation detected."
        ),
        "confidence": "high",
        "flags": [],
        "detected_objects": ["water", "buildings", "vehicles", "debris"],
        "context_match": True,
    },
    {
        "authenticity_score": 0.45,
        "status": "suspicious",
        "analysis": (
            "Image shows inconsistent lighting and possible compositing artifacts. "
            "Water reflection does not match expected physics."
        ),
        "confidence": "medium",
        "flags": ["inconsistent_lighting", "possible_compositing"],
        "detected_objects": ["water", "street", "cars"],
        "context_match": False,
    },
    {
        "authenticity_score": 0.88,
        "status": "authentic",
        "analysis": (
            "Wildfire image appears genuine with natural smoke patterns and "
            "appropriate environmental context."
        ),
        "confidence": "high",
        "flags": [],
        "detected_objects": ["fire", "smoke", "trees", "buildings"],
        "context_match": True,
    },
]

# (entry, minutes ago)
_VERIFICATION_HISTORY: list[tuple[dict, int]] = [
    (
        {
            "id": "1",
            "image_url": "http://example.com/flood_damage_1.jpg",
            "status": "authentic",
            "authenticity_score": 0.95,
            "confidence": "high",
            "verified_by": "citizen1",
            "flags": [],
        },
        60,
    ),
    (
        {
            "id": "2",
            "image_url": "http://example.com/suspicious_flood.jpg",
            "status": "suspicious",
            "authenticity_score": 0.42,
            "confidence": "medium",
            "verified_by": "netrunnerX",
            "flags": ["inconsistent_lighting"],
        },
        30,
    ),
    (
        {
            "id": "3",
            "image_url": "http://example.com/clearly_fake.jpg",
            "status": "fake",
            "authenticity_score": 0.15,
            "confidence": "high",
            "verified_by": "reliefAdmin",
            "flags": ["manipulation_detected", "compositing_artifacts"],
        },
        15,
    ),
]


def disasters(tag: str | None = None) -> list[dict]:
    now = _ago(0)
    out = []
    for disaster in _DISASTERS:
        if tag and tag not in disaster["tags"]:
            continue
        record = copy.deepcopy(disaster)
        record["created_at"] = now
        record["audit_trail"] = [
            {"action": "create", "user_id": disaster["owner_id"], "timestamp": now}
        ]
        out.append(record)
    return out


def find_disaster(disaster_id: str) -> dict | None:
    return next((d for d in disasters() if d["id"] == disaster_id), None)


def resources(disaster_id: str | None = None) -> list[dict]:
    now = _ago(0)
    return [
        {**copy.deepcopy(r), "created_at": now}
        for r in _RESOURCES
        if disaster_id is None or r["disaster_id"] == disaster_id
    ]


def find_resource(disaster_id: str, resource_id: str) -> dict | None:
    return next((r for r in resources(disaster_id) if r["id"] == resource_id), None)


def reports(disaster_id: str) -> list[dict]:
    now = _ago(0)
    return [
        {**copy.deepcopy(r), "created_at": now}
        for r in _REPORTS
        if r["disaster_id"] == disaster_id
    ]


def _matches_keywords(text: str, hashtags: list[str], keywords: list[str]) -> bool:
    if not keywords:
        return True
    lowered = text.casefold()
    tags = [t.casefold() for t in hashtags]
    for keyword in keywords:
        k = keyword.strip().casefold()
        if k and (k in lowered or any(k in t for t in tags)):
            return True
    return False


def _jitter_engagement(engagement: dict, likes: int, retweets: int, replies: int) -> dict:
    return {
        "likes": engagement["likes"] + random.randint(0, likes),
        "retweets": engagement["retweets"] + random.randint(0, retweets),
        "replies": engagement["replies"] + random.randint(0, replies),
    }


def _restamp_id(post_id: str) -> str:
    return f"{post_id}_{int(utc_now().timestamp() * 1000)}_{uuid.uuid4().hex[:5]}"


def realtime_posts(keywords: list[str] | None = None) -> list[dict]:
    """Simulated live feed for a disaster: fresh ids, timestamps and counts."""
    out = []
    for post, _minutes in _SOCIAL_POSTS:
        if not _matches_keywords(post["content"], post["hashtags"], keywords or []):
            continue
        record = copy.deepcopy(post)
        record["id"] = _restamp_id(post["id"])
        record["timestamp"] = _ago(random.uniform(0, 60))
        record["engagement"] = _jitter_engagement(post["engagement"], 200, 100, 50)
        out.append(record)
    return out


def feed_posts(keywords: list[str] | None = None) -> list[dict]:
    out = []
    for post, minutes in _FEED_POSTS:
        if not _matches_keywords(post["post"], post["hashtags"], keywords or []):
            continue
        record = copy.deepcopy(post)
        record["timestamp"] = _ago(minutes)
        out.append(record)
    return out


def restamp_feed_post(post: dict) -> dict:
    return {
        **post,
        "id": _restamp_id(post["id"]),
        "timestamp": _ago(random.uniform(0, 60)),
        "engagement": _jitter_engagement(post["engagement"], 10, 5, 3),
    }


def trending() -> list[dict]:
    return copy.deepcopy(TRENDING_HASHTAGS)


def official_updates() -> list[dict]:
    return [
        {**copy.deepcopy(update), "published_at": _ago(minutes)}
        for update, minutes in _OFFICIAL_UPDATES
    ]


def _string_hash(value: str) -> int:
    h = 0
    for ch in value:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFF
    return h


def mock_verification(image_url: str) -> dict:
    index = _string_hash(image_url) % len(_VERIFICATION_RESULTS)
    result = copy.deepcopy(_VERIFICATION_RESULTS[index])
    result["image_url"] = image_url
    result["verified_at"] = _ago(0)
    result["verification_method"] = "mock"
    return result


def verification_history(disaster_id: str) -> list[dict]:
    return [
        {**copy.deepcopy(entry), "disaster_id": disaster_id, "verified_at": _ago(minutes)}
        for entry, minutes in _VERIFICATION_HISTORY
    ]


def synthetic_id() -> str:
    return uuid.uuid4().hex[:9]

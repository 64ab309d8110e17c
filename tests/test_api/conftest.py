"""Shared fixtures for the API test suite.

All tests run in JSON fallback mode (no database required).
We seed helpers._COLLECTIONS directly, and patch db.is_available() → False.

Every sample record sits north, south or east of CENTER (Visakhapatnam),
at distances chosen so the expected ordering is unambiguous.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

CENTER = {"latitude": "17.7", "longitude": "83.3"}

_NOW = datetime.now(timezone.utc)


def _point(lat, lon=83.3):
    return {"type": "Point", "coordinates": [lon, lat]}


def _days(n):
    return (_NOW + timedelta(days=n)).isoformat()


# ---------------------------------------------------------------------------
# Sample records (mirror the JSON seed shape)
# ---------------------------------------------------------------------------

SAMPLE_HOSPITALS: list[dict] = [
    {
        "id": "hosp-central",
        "name": "Central Emergency Hospital",
        "address": "1 Beach Road",
        "city": "Visakhapatnam",
        "state": "Andhra Pradesh",
        "phone": "+910000000001",
        "email": "er@central.example",
        "emergency_support": True,
        "is_active": True,
        "verification_status": "approved",
        "location": _point(17.709),  # 1.0 km
    },
    {
        "id": "hosp-north",
        "name": "Northside Clinic",
        "address": "7 Hill Street",
        "city": "Visakhapatnam",
        "state": "Andhra Pradesh",
        "phone": None,
        "email": None,
        "emergency_support": False,
        "is_active": True,
        "verification_status": "approved",
        "location": _point(17.727),  # 3.0 km
    },
    {
        "id": "hosp-pending",
        "name": "Pending Hospital",
        "emergency_support": True,
        "is_active": True,
        "verification_status": "pending",
        "location": _point(17.7045),  # 0.5 km
    },
    {
        "id": "hosp-inactive",
        "name": "Inactive Hospital",
        "emergency_support": True,
        "is_active": False,
        "verification_status": "approved",
        "location": _point(17.7018),  # 0.2 km
    },
    {
        "id": "hosp-far",
        "name": "Far Emergency Hospital",
        "emergency_support": True,
        "is_active": True,
        "verification_status": "approved",
        "location": _point(17.8349),  # 15.0 km
    },
    {
        "id": "hosp-unmapped",
        "name": "Unmapped Hospital",
        "emergency_support": True,
        "is_active": True,
        "verification_status": "approved",
        "location": None,
    },
]


def _camp(cid, name, lat, lon=83.3, **fields):
    camp = {
        "id": cid,
        "name": name,
        "description": f"{name} donation drive",
        "date_time": _days(7),
        "venue_name": f"{name} Hall",
        "venue_address": "Main Road",
        "venue_city": "Visakhapatnam",
        "venue_state": "Andhra Pradesh",
        "organizer_name": "Red Cross",
        "status": "upcoming",
        "is_active": True,
        "slots_total": 100,
        "slots_booked": 0,
        "units_collected": 0,
        "location": _point(lat, lon),
    }
    camp.update(fields)
    return camp


SAMPLE_CAMPS: list[dict] = [
    _camp("camp-week", "Week Camp", 17.718, slots_booked=40),  # 2.0 km, in 7 days
    _camp("camp-soon", "Soon Camp", 17.7, lon=83.3472, date_time=_days(3), slots_total=50),  # 5.0 km east
    _camp("camp-stale", "Stale Camp", 17.673, date_time=_days(-2)),  # 3.0 km, date passed
    _camp("camp-done", "Done Camp", 17.664, status="completed", date_time=_days(-10), units_collected=80),  # 4.0 km
    _camp("camp-empty", "Empty Camp", 17.6865, status="ongoing", date_time=_days(0)),  # 1.5 km, nothing collected
    _camp("camp-live", "Live Camp", 17.709, status="ongoing", date_time=_days(0), units_collected=20),  # 1.0 km
    _camp("camp-cancelled", "Cancelled Camp", 17.709, status="cancelled", is_active=False),
]

SAMPLE_ALERTS: list[dict] = [
    {
        "id": "alert-older",
        "alert_type": "SHORTAGE",
        "blood_group": "O-",
        "urgency_score": 90,
        "hospital_id": "hosp-central",
        "hospital_name": "Central Emergency Hospital",
        "units_required": 6,
        "description": "O- shortage",
        "is_active": True,
        "created_at": "2026-10-01T09:00:00+00:00",
        "location": _point(17.709),  # 1.0 km
    },
    {
        "id": "alert-newer",
        "alert_type": "SHORTAGE",
        "blood_group": "AB-",
        "urgency_score": 90,
        "hospital_id": "hosp-north",
        "hospital_name": "Northside Clinic",
        "units_required": 3,
        "description": "AB- shortage",
        "is_active": True,
        "created_at": "2026-10-05T09:00:00+00:00",
        "location": _point(17.727),  # 3.0 km
    },
    {
        "id": "alert-camp",
        "alert_type": "CAMP",
        "blood_group": None,
        "urgency_score": 60,
        "description": "Donation camp this weekend",
        "is_active": True,
        "created_at": "2026-10-10T09:00:00+00:00",
        "location": _point(17.7045),  # 0.5 km
    },
    {
        "id": "alert-closed",
        "alert_type": "EXPIRY",
        "blood_group": "B-",
        "urgency_score": 95,
        "description": "Resolved expiry warning",
        "is_active": False,
        "created_at": "2026-10-11T09:00:00+00:00",
        "location": _point(17.701),
    },
    {
        "id": "alert-distant",
        "alert_type": "SHORTAGE",
        "blood_group": "O-",
        "urgency_score": 99,
        "description": "Shortage in another district",
        "is_active": True,
        "created_at": "2026-10-12T09:00:00+00:00",
        "location": _point(17.97),  # 30.0 km
    },
]

SAMPLE_POSTS: list[dict] = [
    {
        "id": "post-critical-old",
        "author_name": "Ravi",
        "title": "Need O- urgently",
        "content": "Surgery tomorrow morning",
        "type": "request",
        "blood_group": "O-",
        "urgency": "critical",
        "status": "active",
        "created_at": "2026-10-01T08:00:00+00:00",
        "location": _point(17.718),  # 2.0 km
    },
    {
        "id": "post-low",
        "author_name": "Anita",
        "title": "Donation drive thanks",
        "content": "Thanks to all donors",
        "type": "story",
        "blood_group": None,
        "urgency": "low",
        "status": "active",
        "created_at": "2026-10-10T08:00:00+00:00",
        "location": _point(17.709),  # 1.0 km
    },
    {
        "id": "post-critical-new",
        "author_name": "Kiran",
        "title": "B+ needed for accident victim",
        "content": "KGH emergency ward",
        "type": "request",
        "blood_group": "B+",
        "urgency": "critical",
        "status": "active",
        "created_at": "2026-10-12T08:00:00+00:00",
        "location": _point(17.736),  # 4.0 km
    },
    {
        "id": "post-resolved",
        "author_name": "Sita",
        "title": "Found donor",
        "content": "Resolved",
        "type": "request",
        "blood_group": "A+",
        "urgency": "high",
        "status": "resolved",
        "created_at": "2026-10-13T08:00:00+00:00",
        "location": _point(17.709),
    },
    {
        "id": "post-far",
        "author_name": "Vijay",
        "title": "Camp in another town",
        "content": "Far away",
        "type": "announcement",
        "blood_group": "Any",
        "urgency": "medium",
        "status": "active",
        "created_at": "2026-10-14T08:00:00+00:00",
        "location": _point(18.42),  # 80.1 km
    },
]


def sample_collections() -> dict[str, list[dict]]:
    return {
        "hospitals": copy.deepcopy(SAMPLE_HOSPITALS),
        "blood_camps": copy.deepcopy(SAMPLE_CAMPS),
        "civic_alerts": copy.deepcopy(SAMPLE_ALERTS),
        "community_posts": copy.deepcopy(SAMPLE_POSTS),
    }


# ---------------------------------------------------------------------------
# App fixture — seeds JSON fallback, patches DB away
# ---------------------------------------------------------------------------


@pytest.fixture()
def app():
    """FastAPI app running in JSON fallback mode (no DB)."""
    with (
        patch("lifelink.api.db.is_available", return_value=False),
        patch("lifelink.api.db.init_pool", return_value=False),
        patch("lifelink.api.db.close_pool"),
    ):
        from lifelink.api.app import app as _app
        from lifelink.api import helpers

        # Seed JSON fallback data
        helpers._COLLECTIONS = sample_collections()

        # Set server_started_at on app.state (normally done in lifespan)
        _app.state.server_started_at = datetime(2026, 10, 1, 0, 0, 0, tzinfo=timezone.utc)

        yield _app

        # Cleanup
        helpers._COLLECTIONS = {name: [] for name in helpers.SEED_FILES}


@pytest.fixture()
def client(app):
    """Test client without lifespan (JSON fallback state is seeded by the app fixture)."""
    return TestClient(app, raise_server_exceptions=False)

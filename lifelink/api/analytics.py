"""
LifeLink — Coverage / Analytics Aggregator

Builds the coverage picture for an area from several independent proximity
queries.  The queries are not run in a transaction, so under concurrent
writes the counts may describe slightly different instants; any single
failing query aborts the whole report.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .helpers import parse_timestamp
from .queries import count_nearby, find_nearby
from ..algorithms.coverage import CoverageReport
from ..algorithms.geo_distance import GeoPoint

logger = logging.getLogger(__name__)

APPROVED_HOSPITAL_FILTERS: dict[str, Any] = {
    "is_active": True,
    "verification_status": "approved",
}

EMERGENCY_HOSPITAL_FILTERS: dict[str, Any] = {
    **APPROVED_HOSPITAL_FILTERS,
    "emergency_support": True,
}

UPCOMING_CAMP_DETAIL_LIMIT = 5


def upcoming_camp_filters(now: datetime | None = None) -> dict[str, Any]:
    """Active camps still to come: status 'upcoming' and date_time >= now."""
    return {
        "is_active": True,
        "status": "upcoming",
        "date_time": {"gte": now or datetime.now(timezone.utc)},
    }


def _camp_start(camp: dict[str, Any]) -> datetime:
    return parse_timestamp(camp.get("date_time"))


def slots_available(camp: dict[str, Any]) -> int:
    return (camp.get("slots_total") or 0) - (camp.get("slots_booked") or 0)


def compute_coverage(
    center: GeoPoint,
    radius_km: float,
    now: datetime | None = None,
) -> CoverageReport:
    """
    Coverage report for the circle of radius_km around center.

    Counts approved hospitals, the emergency-capable subset and upcoming
    camps; finds the nearest emergency hospital and the soonest upcoming
    camps.  coverage_score = min(100, hospitals×10 + emergency×20 + camps×5).
    """
    camp_filters = upcoming_camp_filters(now)

    hospitals = count_nearby("hospitals", center, radius_km, APPROVED_HOSPITAL_FILTERS)
    emergency = count_nearby("hospitals", center, radius_km, EMERGENCY_HOSPITAL_FILTERS)
    camps = count_nearby("blood_camps", center, radius_km, camp_filters)

    nearest = find_nearby("hospitals", center, radius_km, EMERGENCY_HOSPITAL_FILTERS, limit=1)
    nearest_emergency = None
    if nearest:
        nearest_emergency = {
            "name": nearest[0].get("name"),
            "distance": round(nearest[0]["distance_km"], 2),
        }

    upcoming = find_nearby("blood_camps", center, radius_km, camp_filters, limit=None)
    upcoming.sort(key=_camp_start)
    camp_details = [
        {
            "name": c.get("name"),
            "date": c.get("date_time"),
            "venue": c.get("venue_city"),
            "slotsAvailable": slots_available(c),
            "distance": round(c["distance_km"], 2),
        }
        for c in upcoming[:UPCOMING_CAMP_DETAIL_LIMIT]
    ]

    logger.debug(
        "Coverage at (%s, %s) r=%skm: hospitals=%d emergency=%d camps=%d",
        center.latitude, center.longitude, radius_km, hospitals, emergency, camps,
    )

    return CoverageReport.from_counts(
        hospitals,
        emergency,
        camps,
        nearest_emergency=nearest_emergency,
        upcoming_camp_details=camp_details,
    )

"""Hospital-side coordination endpoints (camps a hospital can draw stock from)."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ..helpers import ok, parse_number
from ..queries import find_nearby, get_record
from ...algorithms.geo_distance import estimated_travel_minutes
from ...algorithms.proximity import record_point

logger = logging.getLogger(__name__)

router = APIRouter()

SUPPLYING_CAMP_FILTERS: dict[str, Any] = {
    "status": {"in": ["ongoing", "completed"]},
    "units_collected": {"gt": 0},
}
SUPPLYING_CAMP_LIMIT = 10
DEFAULT_SUPPLY_RADIUS_M = 50000.0


def supplying_camp_result(rec: dict[str, Any]) -> dict[str, Any]:
    dist = rec["distance_km"]
    return {
        "id": rec.get("id"),
        "name": rec.get("name"),
        "venue": {
            "name": rec.get("venue_name"),
            "address": rec.get("venue_address"),
            "city": rec.get("venue_city"),
        },
        "date": rec.get("date_time"),
        "status": rec.get("status"),
        "distance": round(dist),
        "estimatedTransferTime": estimated_travel_minutes(dist),
        "totalUnitsCollected": rec.get("units_collected") or 0,
    }


@router.get("/api/hospitals/{hospital_id}/nearby-camps")
async def hospital_nearby_camps(
    hospital_id: str,
    radius: str | None = Query(None, description="Search radius in metres (default 50000)"),
) -> dict[str, Any]:
    """Ongoing or completed camps with collected units near a hospital, with transfer estimates."""
    radius_km = parse_number(radius, DEFAULT_SUPPLY_RADIUS_M, "radius") / 1000

    try:
        hospital = get_record("hospitals", hospital_id)
    except Exception:
        logger.exception("Hospital lookup failed for %s", hospital_id)
        raise HTTPException(status_code=500, detail="Failed to retrieve nearby camps")

    if hospital is None:
        raise HTTPException(status_code=404, detail="Hospital not found")

    center = record_point(hospital)
    if center is None or not center.is_valid():
        raise HTTPException(status_code=400, detail="Hospital location not configured")

    try:
        camps = find_nearby("blood_camps", center, radius_km, SUPPLYING_CAMP_FILTERS, SUPPLYING_CAMP_LIMIT)
    except Exception:
        logger.exception("Supplying camps query failed for hospital %s", hospital_id)
        raise HTTPException(status_code=500, detail="Failed to retrieve nearby camps")

    return ok(
        "Nearby camps retrieved successfully",
        {
            "hospitalLocation": {
                "coordinates": hospital["location"]["coordinates"],
                "address": hospital.get("address"),
            },
            "nearbyCamps": [supplying_camp_result(c) for c in camps],
            "searchRadius": radius_km,
        },
    )

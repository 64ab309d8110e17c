"""Geolocation endpoints (nearby hospitals, nearby camps, analytics, map data)."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ..analytics import (
    APPROVED_HOSPITAL_FILTERS,
    compute_coverage,
    slots_available,
    upcoming_camp_filters,
)
from ..helpers import location_dict, ok, parse_bool, parse_number, require_center
from ..queries import find_nearby
from ...algorithms.proximity import record_point

logger = logging.getLogger(__name__)

router = APIRouter()

MAP_HOSPITAL_LIMIT = 50
MAP_CAMP_LIMIT = 30


# ---------------------------------------------------------------------------
# Record → response formatting
# ---------------------------------------------------------------------------


def hospital_result(rec: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": rec.get("id"),
        "name": rec.get("name"),
        "address": rec.get("address"),
        "city": rec.get("city"),
        "state": rec.get("state"),
        "phone": rec.get("phone"),
        "email": rec.get("email"),
        "location": location_dict(record_point(rec)),
        "distance": round(rec["distance_km"], 2),
        "emergencySupport": bool(rec.get("emergency_support")),
    }


def camp_result(rec: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": rec.get("id"),
        "name": rec.get("name"),
        "description": rec.get("description"),
        "date": rec.get("date_time"),
        "venue": {
            "name": rec.get("venue_name"),
            "address": rec.get("venue_address"),
            "city": rec.get("venue_city"),
            "state": rec.get("venue_state"),
        },
        "location": location_dict(record_point(rec)),
        "organizer": rec.get("organizer_name"),
        "status": rec.get("status"),
        "availability": {
            "total": rec.get("slots_total") or 0,
            "booked": rec.get("slots_booked") or 0,
            "available": slots_available(rec),
        },
        "distance": round(rec["distance_km"], 2),
    }


def hospital_marker(rec: dict[str, Any]) -> dict[str, Any]:
    point = record_point(rec)
    return {
        "id": rec.get("id"),
        "type": "hospital",
        "name": rec.get("name"),
        "address": rec.get("address"),
        "city": rec.get("city"),
        "latitude": point.latitude,
        "longitude": point.longitude,
        "emergencySupport": bool(rec.get("emergency_support")),
    }


def camp_marker(rec: dict[str, Any]) -> dict[str, Any]:
    point = record_point(rec)
    return {
        "id": rec.get("id"),
        "type": "camp",
        "name": rec.get("name"),
        "venue": rec.get("venue_name"),
        "city": rec.get("venue_city"),
        "date": rec.get("date_time"),
        "organizer": rec.get("organizer_name"),
        "latitude": point.latitude,
        "longitude": point.longitude,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/api/geolocation/nearby-hospitals")
async def nearby_hospitals(
    latitude: str | None = Query(None, description="Latitude of the user"),
    longitude: str | None = Query(None, description="Longitude of the user"),
    radius: str | None = Query(None, description="Search radius in km (default 10)"),
    emergency_only: str | None = Query(None, alias="emergencyOnly"),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    """Approved, active hospitals near a point, nearest first."""
    center = require_center(latitude, longitude)
    radius_km = parse_number(radius, 10.0, "radius")

    filters = dict(APPROVED_HOSPITAL_FILTERS)
    if parse_bool(emergency_only, False):
        filters["emergency_support"] = True

    try:
        hospitals = [hospital_result(r) for r in find_nearby("hospitals", center, radius_km, filters, limit)]
    except Exception:
        logger.exception("Nearby hospitals query failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve nearby hospitals")

    return ok(
        "Nearby hospitals retrieved successfully",
        {
            "hospitals": hospitals,
            "count": len(hospitals),
            "userLocation": center.as_dict(),
            "searchRadius": radius_km,
        },
    )


@router.get("/api/geolocation/nearby-camps")
async def nearby_camps(
    latitude: str | None = Query(None),
    longitude: str | None = Query(None),
    radius: str | None = Query(None, description="Search radius in km (default 20)"),
    upcoming_only: str | None = Query(None, alias="upcomingOnly"),
    limit: int = Query(15, ge=1, le=100),
) -> dict[str, Any]:
    """Active blood camps near a point; by default only those still to come."""
    center = require_center(latitude, longitude)
    radius_km = parse_number(radius, 20.0, "radius")

    if parse_bool(upcoming_only, True):
        filters = upcoming_camp_filters()
    else:
        filters = {"is_active": True}

    try:
        camps = [camp_result(r) for r in find_nearby("blood_camps", center, radius_km, filters, limit)]
    except Exception:
        logger.exception("Nearby camps query failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve nearby camps")

    return ok(
        "Nearby blood camps retrieved successfully",
        {
            "camps": camps,
            "count": len(camps),
            "userLocation": center.as_dict(),
            "searchRadius": radius_km,
        },
    )


@router.get("/api/geolocation/analytics")
async def geo_analytics(
    latitude: str | None = Query(None),
    longitude: str | None = Query(None),
    radius: str | None = Query(None, description="Search radius in km (default 50)"),
) -> dict[str, Any]:
    """Coverage score, counts and insights for the area around a point."""
    center = require_center(latitude, longitude)
    radius_km = parse_number(radius, 50.0, "radius")

    try:
        report = compute_coverage(center, radius_km)
    except Exception:
        logger.exception("Geolocation analytics failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve geolocation analytics")

    return ok(
        "Geolocation analytics retrieved successfully",
        {
            "userLocation": center.as_dict(),
            "searchRadius": radius_km,
            "statistics": report.statistics(),
            "nearestEmergency": report.nearest_emergency,
            "upcomingCampDetails": report.upcoming_camp_details,
            "insights": report.insights,
        },
    )


@router.get("/api/geolocation/map-data")
async def map_data(
    latitude: str | None = Query(None),
    longitude: str | None = Query(None),
    radius: str | None = Query(None, description="Search radius in km (default 30)"),
) -> dict[str, Any]:
    """Hospital and upcoming-camp markers for map rendering."""
    center = require_center(latitude, longitude)
    radius_km = parse_number(radius, 30.0, "radius")

    try:
        hospitals = [
            hospital_marker(r)
            for r in find_nearby("hospitals", center, radius_km, APPROVED_HOSPITAL_FILTERS, MAP_HOSPITAL_LIMIT)
        ]
        camps = [
            camp_marker(r)
            for r in find_nearby("blood_camps", center, radius_km, upcoming_camp_filters(), MAP_CAMP_LIMIT)
        ]
    except Exception:
        logger.exception("Map data query failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve map data")

    return ok(
        "Map data retrieved successfully",
        {
            "userLocation": center.as_dict(),
            "hospitals": hospitals,
            "camps": camps,
            "counts": {
                "hospitals": len(hospitals),
                "emergencyHospitals": sum(1 for h in hospitals if h["emergencySupport"]),
                "camps": len(camps),
            },
        },
    )

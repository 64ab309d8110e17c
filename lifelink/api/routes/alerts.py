"""Civic alert endpoints (nearby alerts, create, activate/deactivate)."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from .. import db
from ..db import extras
from ..helpers import ok, parse_number, parse_timestamp, require_center, require_db
from ..models import AlertStatusUpdate, CivicAlertCreate
from ..queries import COLLECTIONS, find_nearby, get_record
from ...algorithms.urgency import score_civic_alert

logger = logging.getLogger(__name__)

router = APIRouter()

ALERT_LIMIT = 50
DEFAULT_ALERT_RADIUS_M = 20000.0

_RETURNING = (
    "RETURNING "
    + ", ".join(COLLECTIONS["civic_alerts"].columns)
    + ", ST_X(location::geometry) AS longitude, ST_Y(location::geometry) AS latitude"
)


def alert_result(rec: dict[str, Any]) -> dict[str, Any]:
    """Civic alert in the client's shape; location stays GeoJSON ([lon, lat])."""
    result = {
        "id": rec.get("id"),
        "alertType": rec.get("alert_type"),
        "bloodGroup": rec.get("blood_group"),
        "urgencyScore": rec.get("urgency_score"),
        "hospitalId": rec.get("hospital_id"),
        "hospitalName": rec.get("hospital_name"),
        "location": rec.get("location"),
        "unitsRequired": rec.get("units_required"),
        "expiryWarningHours": rec.get("expiry_warning_hours"),
        "eventDate": rec.get("event_date"),
        "description": rec.get("description"),
        "isActive": rec.get("is_active"),
        "createdAt": rec.get("created_at"),
    }
    if "distance_km" in rec:
        result["distance"] = round(rec["distance_km"], 1)
    return result


def rank_alerts(alerts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Most urgent first; ties broken by newest first."""
    ranked = sorted(alerts, key=lambda a: parse_timestamp(a.get("created_at")), reverse=True)
    ranked.sort(key=lambda a: a.get("urgency_score") or 0, reverse=True)
    return ranked


def build_alert_record(payload: CivicAlertCreate, hospital: dict[str, Any] | None) -> dict[str, Any]:
    """
    Assemble the row for a new civic alert.

    The issuing hospital's name is copied onto the alert, and its location is
    used when the payload carries none.  urgency_score is computed here and
    stored as a snapshot.
    """
    record: dict[str, Any] = {
        "alert_type": payload.alert_type,
        "blood_group": payload.blood_group,
        "hospital_id": payload.hospital_id,
        "hospital_name": None,
        "units_required": payload.units_required,
        "expiry_warning_hours": payload.expiry_warning_hours,
        "event_date": payload.event_date,
        "description": payload.description,
        "is_active": True,
        "location": payload.location.model_dump() if payload.location else None,
    }

    if hospital is not None:
        record["hospital_name"] = hospital.get("name")
        if record["location"] is None and hospital.get("location"):
            lon, lat = hospital["location"]["coordinates"][:2]
            record["location"] = {"type": "Point", "coordinates": [lon, lat]}

    record["urgency_score"] = score_civic_alert(record)
    return record


@router.get("/api/public/alerts")
async def civic_alerts(
    lat: str | None = Query(None, description="Latitude"),
    lng: str | None = Query(None, description="Longitude"),
    radius: str | None = Query(None, description="Search radius in metres (default 20000)"),
) -> dict[str, Any]:
    """Active civic alerts around a point, most urgent first, each with its distance in km."""
    center = require_center(lat, lng)
    radius_km = parse_number(radius, DEFAULT_ALERT_RADIUS_M, "radius") / 1000

    try:
        nearby = find_nearby("civic_alerts", center, radius_km, {"is_active": True}, limit=None)
    except Exception:
        logger.exception("Civic alert query failed")
        raise HTTPException(status_code=500, detail="Error fetching civic alerts")

    alerts = [alert_result(a) for a in rank_alerts(nearby)[:ALERT_LIMIT]]
    return ok(
        "Civic alerts retrieved successfully",
        {"alerts": alerts, "count": len(alerts)},
    )


@router.post("/api/public/alerts", status_code=201)
async def create_civic_alert(req: CivicAlertCreate) -> dict[str, Any]:
    """Create a civic alert.  Requires database mode."""
    require_db()

    try:
        hospital = None
        if req.hospital_id:
            hospital = get_record("hospitals", req.hospital_id)
            if hospital is None:
                raise HTTPException(status_code=404, detail="Hospital not found")

        record = build_alert_record(req, hospital)
        if record["location"] is None:
            raise HTTPException(status_code=400, detail="Alert location is required")

        lon, lat = record["location"]["coordinates"]
        with db.get_conn() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(
                    """
                    INSERT INTO civic_alerts (
                        alert_type, blood_group, urgency_score, hospital_id,
                        hospital_name, units_required, expiry_warning_hours,
                        event_date, description, is_active, location
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                        ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography
                    )
                    """
                    + _RETURNING,
                    (
                        record["alert_type"],
                        record["blood_group"],
                        record["urgency_score"],
                        record["hospital_id"],
                        record["hospital_name"],
                        record["units_required"],
                        record["expiry_warning_hours"],
                        record["event_date"],
                        record["description"],
                        record["is_active"],
                        lon,
                        lat,
                    ),
                )
                row = cur.fetchone()

        created = COLLECTIONS["civic_alerts"].row_to_record(row)
        logger.info(
            "Civic alert %s created (%s, urgency %s)",
            created["id"], created["alert_type"], created["urgency_score"],
        )
        return ok("Civic alert created", alert_result(created))

    except HTTPException:
        raise
    except Exception:
        logger.exception("Civic alert creation failed")
        raise HTTPException(status_code=500, detail="Error creating civic alert")


@router.patch("/api/public/alerts/{alert_id}/status")
async def update_alert_status(alert_id: str, req: AlertStatusUpdate) -> dict[str, Any]:
    """Activate or deactivate a civic alert.  Requires database mode."""
    require_db()

    try:
        with db.get_conn() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(
                    "UPDATE civic_alerts SET is_active = %s, updated_at = now() "
                    "WHERE id::text = %s " + _RETURNING,
                    (req.is_active, alert_id),
                )
                row = cur.fetchone()
    except Exception:
        logger.exception("Civic alert status update failed")
        raise HTTPException(status_code=500, detail="Error updating alert status")

    if row is None:
        raise HTTPException(status_code=404, detail="Alert not found")

    return ok("Alert status updated", alert_result(COLLECTIONS["civic_alerts"].row_to_record(row)))

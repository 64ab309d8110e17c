"""
LifeLink — In-Memory Proximity Matching

Answers "which records lie within radius_km of a point" over a list of
record dicts, each carrying a GeoJSON ``location``.  Used when the API runs
without a database, and as the reference behaviour for the PostGIS query.

Filters are a conjunction of constraints keyed by field name:

    {"is_active": True}                        equality
    {"date_time": {"gte": now}}                range (gte, gt, lte, lt)
    {"status": {"in": ["ongoing", "completed"]}} membership
    {"verification_status": {"ne": "rejected"}} inequality
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .geo_distance import GeoPoint, bounding_box, distance_between

FILTER_OPERATORS = ("gte", "gt", "lte", "lt", "in", "ne")

# Floating-point slack on the exact radius check (1 mm)
RADIUS_EPSILON_KM = 1e-6


def _coerce(value: Any, bound: Any) -> Any:
    """Bring an ISO timestamp string into datetime form when compared to a datetime."""
    if isinstance(bound, datetime) and isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return value


def _check(value: Any, op: str, bound: Any) -> bool:
    if op == "in":
        return value in bound
    if op == "ne":
        return value != bound
    if value is None:
        return False
    value = _coerce(value, bound)
    if op == "gte":
        return value >= bound
    if op == "gt":
        return value > bound
    if op == "lte":
        return value <= bound
    if op == "lt":
        return value < bound
    raise ValueError(f"Unsupported filter operator: {op}")


def matches_filters(record: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    """True when the record satisfies every constraint in filters."""
    if not filters:
        return True
    for field, constraint in filters.items():
        value = record.get(field)
        if isinstance(constraint, dict):
            for op, bound in constraint.items():
                if not _check(value, op, bound):
                    return False
        elif value != constraint:
            return False
    return True


def record_point(record: dict[str, Any], location_key: str = "location") -> GeoPoint | None:
    """Extract the GeoPoint of a record, or None when it has no coordinates."""
    return GeoPoint.from_geojson(record.get(location_key))


def find_nearby_candidates(
    center: GeoPoint,
    candidates: list[dict],
    radius_km: float,
    *,
    filters: dict[str, Any] | None = None,
    limit: int | None = None,
    location_key: str = "location",
) -> list[dict]:
    """
    Filter a list of candidate records to those within radius_km of center.

    Uses a bounding-box pre-filter then exact Haversine check.  Returns
    copies of the matching records sorted by distance (ascending), each
    augmented with 'distance_km' (unrounded; callers round for display).

    Parameters
    ----------
    center : GeoPoint
        The reference point.
    candidates : list of dict
        Records with a GeoJSON point under location_key.
    radius_km : float
        Maximum distance to consider.  0 keeps only coincident points.
    filters : dict, optional
        Attribute constraints applied before the distance check.
    limit : int, optional
        Maximum number of results.
    """
    min_lat, max_lat, min_lon, max_lon = bounding_box(center, radius_km)

    nearby = []
    for rec in candidates:
        point = record_point(rec, location_key)
        if point is None:
            continue
        if not matches_filters(rec, filters):
            continue
        # Bounding-box pre-filter
        if not (min_lat <= point.latitude <= max_lat and min_lon <= point.longitude <= max_lon):
            continue
        dist = distance_between(center, point)
        if radius_km == 0:
            if point != center:
                continue
        elif dist > radius_km + RADIUS_EPSILON_KM:
            continue
        nearby.append({**rec, "distance_km": dist})

    nearby.sort(key=lambda r: r["distance_km"])
    if limit is not None:
        nearby = nearby[:limit]
    return nearby

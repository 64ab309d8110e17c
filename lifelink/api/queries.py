"""
LifeLink — Proximity Query Adapter

Answers radius queries against the located collections (hospitals, blood
camps, civic alerts, community posts) in either storage mode:

  • Database mode — PostGIS ``ST_DWithin`` on a GiST-indexed
    ``geography(Point, 4326)`` column, nearest first.
  • JSON fallback — bounding-box + Haversine scan of the seeded records.

Both modes hand back plain record dicts with a GeoJSON ``location``
([lon, lat] order) and a ``distance_km`` recomputed with the shared
Haversine implementation, sorted ascending by distance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

from . import db
from .db import extras
from .helpers import get_collection, iso
from ..algorithms.geo_distance import GeoPoint, InvalidCoordinates, distance_between
from ..algorithms.proximity import FILTER_OPERATORS, RADIUS_EPSILON_KM, find_nearby_candidates, record_point

logger = logging.getLogger(__name__)

_SQL_OPERATORS = {
    "gte": ">=",
    "gt": ">",
    "lte": "<=",
    "lt": "<",
    "ne": "IS DISTINCT FROM",
}


# ---------------------------------------------------------------------------
# Collection registry
# ---------------------------------------------------------------------------


def _plain_row(row: dict) -> dict[str, Any]:
    """Convert a DB row (RealDictRow) to the record shape used by the JSON seed."""
    record: dict[str, Any] = {}
    for key, value in row.items():
        if key in ("longitude", "latitude"):
            continue
        if isinstance(value, (datetime, date)):
            value = iso(value)
        elif key == "id" or key.endswith("_id"):
            value = str(value) if value is not None else None
        record[key] = value

    lon, lat = row.get("longitude"), row.get("latitude")
    record["location"] = (
        GeoPoint(latitude=float(lat), longitude=float(lon)).to_geojson()
        if lat is not None and lon is not None
        else None
    )
    return record


@dataclass(frozen=True)
class CollectionSpec:
    """Storage details for one located collection."""

    table: str
    columns: tuple[str, ...]
    row_to_record: Callable[[dict], dict[str, Any]] = _plain_row

    def check_filters(self, filters: dict[str, Any] | None) -> None:
        for field, constraint in (filters or {}).items():
            if field not in self.columns:
                raise ValueError(f"Field {field!r} cannot be filtered on {self.table}")
            if isinstance(constraint, dict):
                unknown = set(constraint) - set(FILTER_OPERATORS)
                if unknown:
                    raise ValueError(f"Unsupported filter operator(s): {sorted(unknown)}")


COLLECTIONS: dict[str, CollectionSpec] = {
    "hospitals": CollectionSpec(
        table="hospitals",
        columns=(
            "id", "name", "address", "city", "state", "phone", "email",
            "emergency_support", "is_active", "verification_status",
        ),
    ),
    "blood_camps": CollectionSpec(
        table="blood_camps",
        columns=(
            "id", "name", "description", "date_time",
            "venue_name", "venue_address", "venue_city", "venue_state",
            "organizer_name", "status", "is_active",
            "slots_total", "slots_booked", "units_collected",
        ),
    ),
    "civic_alerts": CollectionSpec(
        table="civic_alerts",
        columns=(
            "id", "alert_type", "blood_group", "urgency_score",
            "hospital_id", "hospital_name", "units_required",
            "expiry_warning_hours", "event_date", "description",
            "is_active", "created_at", "updated_at",
        ),
    ),
    "community_posts": CollectionSpec(
        table="community_posts",
        columns=(
            "id", "author_name", "title", "content", "type", "blood_group",
            "urgency", "status", "created_at",
        ),
    ),
}


def get_spec(collection: str) -> CollectionSpec:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection!r}") from None


# ---------------------------------------------------------------------------
# SQL building
# ---------------------------------------------------------------------------


def _where_clauses(filters: dict[str, Any] | None, params: list[Any]) -> list[str]:
    """Translate a filter dict into SQL conditions, appending bind values to params."""
    conditions: list[str] = []
    for field, constraint in (filters or {}).items():
        if isinstance(constraint, dict):
            for op, bound in constraint.items():
                if op == "in":
                    conditions.append(f"{field} = ANY(%s)")
                    params.append(list(bound))
                else:
                    conditions.append(f"{field} {_SQL_OPERATORS[op]} %s")
                    params.append(bound)
        elif constraint is None:
            conditions.append(f"{field} IS NULL")
        else:
            conditions.append(f"{field} = %s")
            params.append(constraint)
    return conditions


def _radius_sql(spec: CollectionSpec, center: GeoPoint, radius_km: float, filters, params: list[Any]) -> str:
    """FROM/WHERE part of a radius query; radius is converted to metres."""
    params.extend([center.longitude, center.latitude, radius_km * 1000])
    conditions = [
        "location IS NOT NULL",
        "ST_DWithin(location, ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography, %s, false)",
    ]
    conditions.extend(_where_clauses(filters, params))
    return f"FROM {spec.table} WHERE " + " AND ".join(conditions)


def _db_find_nearby(
    spec: CollectionSpec,
    center: GeoPoint,
    radius_km: float,
    filters: dict[str, Any] | None,
    limit: int | None,
) -> list[dict[str, Any]]:
    params: list[Any] = []
    columns = ", ".join(spec.columns)
    sql = (
        f"SELECT {columns}, "
        "ST_X(location::geometry) AS longitude, ST_Y(location::geometry) AS latitude "
        + _radius_sql(spec, center, radius_km, filters, params)
        + " ORDER BY location <-> ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography"
    )
    params.extend([center.longitude, center.latitude])
    if limit is not None:
        sql += " LIMIT %s"
        params.append(limit)

    with db.get_conn() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()

    return [spec.row_to_record(r) for r in rows]


def _db_count_nearby(spec: CollectionSpec, center: GeoPoint, radius_km: float, filters) -> int:
    params: list[Any] = []
    sql = "SELECT count(*) AS count " + _radius_sql(spec, center, radius_km, filters, params)
    with db.get_conn() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            return int(cur.fetchone()["count"])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _check_center(center: GeoPoint) -> None:
    if not isinstance(center, GeoPoint) or not center.is_valid():
        raise InvalidCoordinates("Invalid coordinates")


def find_nearby(
    collection: str,
    center: GeoPoint,
    radius_km: float,
    filters: dict[str, Any] | None = None,
    limit: int | None = 20,
) -> list[dict[str, Any]]:
    """
    Records of a collection within radius_km of center, nearest first.

    Each result is a copy of the stored record plus 'distance_km' (unrounded,
    recomputed with the Haversine formula).  Database rows are rechecked
    against radius_km with that distance, so every result satisfies
    distance_km <= radius_km.  An empty list means nothing matched.

    Raises InvalidCoordinates for an unusable center and ValueError for an
    unknown collection or filter field.
    """
    _check_center(center)
    spec = get_spec(collection)
    spec.check_filters(filters)

    if db.is_available():
        records = _db_find_nearby(spec, center, radius_km, filters, limit)
        results = []
        for rec in records:
            point = record_point(rec)
            if point is None:
                continue
            dist = distance_between(center, point)
            # PostGIS sphere radius differs from the Haversine one by a few mm
            if radius_km == 0:
                if point != center:
                    continue
            elif dist > radius_km + RADIUS_EPSILON_KM:
                continue
            results.append({**rec, "distance_km": dist})
        results.sort(key=lambda r: r["distance_km"])
        return results

    return find_nearby_candidates(
        center,
        get_collection(collection),
        radius_km,
        filters=filters,
        limit=limit,
    )


def count_nearby(
    collection: str,
    center: GeoPoint,
    radius_km: float,
    filters: dict[str, Any] | None = None,
) -> int:
    """Number of records find_nearby would return without a limit."""
    _check_center(center)
    spec = get_spec(collection)
    spec.check_filters(filters)

    if db.is_available():
        return _db_count_nearby(spec, center, radius_km, filters)

    return len(find_nearby_candidates(center, get_collection(collection), radius_km, filters=filters))


def get_record(collection: str, record_id: str) -> dict[str, Any] | None:
    """Fetch one record by id, or None."""
    spec = get_spec(collection)

    if db.is_available():
        columns = ", ".join(spec.columns)
        with db.get_conn() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {columns}, "
                    "ST_X(location::geometry) AS longitude, ST_Y(location::geometry) AS latitude "
                    f"FROM {spec.table} WHERE id::text = %s",
                    (record_id,),
                )
                row = cur.fetchone()
        return spec.row_to_record(row) if row else None

    for rec in get_collection(collection):
        if rec.get("id") == record_id:
            return dict(rec)
    return None

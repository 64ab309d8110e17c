"""Shared helpers, constants, and JSON fallback state for the LifeLink API."""

from __future__ import annotations

import json
import logging
import math
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import HTTPException

from . import db
from ..algorithms.geo_distance import GeoPoint, InvalidCoordinates, parse_center

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = Path(os.environ.get("LIFELINK_DATA_DIR", str(ROOT / "data")))

# Collection name → seed file under DATA_DIR
SEED_FILES = {
    "hospitals": "hospitals.json",
    "blood_camps": "blood_camps.json",
    "civic_alerts": "civic_alerts.json",
    "community_posts": "community_posts.json",
}

# ---------------------------------------------------------------------------
# JSON fallback state (populated by load_seed_data)
# ---------------------------------------------------------------------------

_COLLECTIONS: dict[str, list[dict[str, Any]]] = {name: [] for name in SEED_FILES}


def load_seed_data(data_dir: Path | None = None) -> None:
    """
    Load located records for every collection from the JSON seed files.

    Missing files leave the collection empty.  Records without an id are
    dropped; duplicate ids keep the first occurrence.
    """
    global _COLLECTIONS  # noqa: PLW0603

    base = data_dir or DATA_DIR
    loaded: dict[str, list[dict[str, Any]]] = {}

    for name, filename in SEED_FILES.items():
        fpath = base / filename
        if not fpath.exists():
            logger.warning("Seed file missing for %s: %s", name, fpath)
            loaded[name] = []
            continue

        with open(fpath, "r", encoding="utf-8") as f:
            batch = json.load(f)

        seen: set[str] = set()
        unique: list[dict] = []
        for r in batch if isinstance(batch, list) else []:
            rid = r.get("id")
            if rid and rid not in seen:
                seen.add(rid)
                unique.append(r)

        loaded[name] = unique
        logger.info("Loaded %d %s records from %s", len(unique), name, fpath)

    _COLLECTIONS = loaded


def get_collection(name: str) -> list[dict[str, Any]]:
    """Access a JSON fallback collection by name."""
    return _COLLECTIONS.get(name, [])


def collection_counts() -> dict[str, int]:
    return {name: len(records) for name, records in _COLLECTIONS.items()}


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def iso(dt) -> str | None:
    """Convert a datetime to ISO string."""
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return dt.isoformat()
    return str(dt)


def parse_timestamp(value) -> datetime:
    """
    Timezone-aware datetime for a stored timestamp (datetime or ISO string).

    Naive values are taken as UTC; a missing value sorts before everything.
    """
    if value is None or value == "":
        return _EARLIEST
    if isinstance(value, datetime):
        parsed = value
    else:
        # fromisoformat only takes "Z" from 3.11 on
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def ok(message: str, data: Any) -> dict[str, Any]:
    """Standard success envelope."""
    return {"success": True, "message": message, "data": data}


def location_dict(point: GeoPoint | None) -> dict[str, float] | None:
    return point.as_dict() if point is not None else None


# ---------------------------------------------------------------------------
# Request guards
# ---------------------------------------------------------------------------


def require_center(latitude: Any, longitude: Any, missing_message: str | None = None) -> GeoPoint:
    """Parse query coordinates, turning InvalidCoordinates into a 400."""
    try:
        return parse_center(latitude, longitude)
    except InvalidCoordinates as e:
        message = str(e)
        if missing_message and message == "Latitude and longitude are required":
            message = missing_message
        raise HTTPException(status_code=400, detail=message) from None


def require_db() -> None:
    """Reject write operations while running from the read-only JSON seed."""
    if not db.is_available():
        raise HTTPException(status_code=503, detail="Database unavailable")


def parse_bool(value: str | bool | None, default: bool) -> bool:
    """Interpret query-string booleans ("true", "1", "yes" → True)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("true", "1", "yes", "on")


def parse_number(value: str | None, default: float, name: str) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}") from None
    if not math.isfinite(number) or number < 0:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return number

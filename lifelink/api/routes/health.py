"""Health endpoint: storage mode, located-record counts, uptime."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from .. import db
from ..helpers import collection_counts, iso
from ..queries import COLLECTIONS

logger = logging.getLogger(__name__)

router = APIRouter()


def _database_counts() -> tuple[dict[str, int], float]:
    """Row count per located table and the probe latency in ms."""
    started = time.monotonic()
    counts: dict[str, int] = {}
    with db.get_conn() as conn:
        with conn.cursor() as cur:
            for name, spec in COLLECTIONS.items():
                cur.execute(f"SELECT count(*) FROM {spec.table}")
                counts[name] = cur.fetchone()[0]
    return counts, round((time.monotonic() - started) * 1000, 1)


@router.get("/api/health")
async def health(request: Request):
    """
    Report whether the API is serving from PostGIS or from the JSON seed.

    200 "healthy" in database mode; 503 "degraded" when running from the
    seed files or when the database probe fails.
    """
    database: dict[str, Any] = {"status": "down", "latency_ms": None}
    mode = "json_fallback"
    counts = None

    if db.is_available():
        try:
            counts, database["latency_ms"] = _database_counts()
            database["status"] = "up"
            mode = "database"
        except Exception:
            logger.warning("Database probe failed during health check", exc_info=True)

    if counts is None:
        counts = collection_counts()

    started_at: datetime = request.app.state.server_started_at
    healthy = database["status"] == "up"

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "mode": mode,
            "record_counts": counts,
            "version": request.app.version,
            "database_connected": healthy,
            "started_at": iso(started_at),
            "uptime_seconds": int((datetime.now(timezone.utc) - started_at).total_seconds()),
            "checks": {"database": database},
        },
    )

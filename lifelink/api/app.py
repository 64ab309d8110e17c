#!/usr/bin/env python3
"""
LifeLink — Geolocation & Urgency API

Dual-mode FastAPI server:
  • Database mode — reads from PostgreSQL/PostGIS when available (enables writes)
  • JSON fallback — reads from the seed files under data/ when DB is unavailable

Usage:
    uvicorn lifelink.api.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import db
from .helpers import DATA_DIR, load_seed_data
from .request_log import request_logging_middleware
from .routes import alerts, community, geolocation, health, hospitals, urgency
from .. import __version__
from ..algorithms.urgency import load_urgency_config

logging.basicConfig(
    level=os.environ.get("LIFELINK_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.server_started_at = datetime.now(timezone.utc)
    # Seed records back every read when PostGIS is unreachable
    load_seed_data()
    if db.init_pool():
        logger.info("Serving located records from PostGIS (database mode)")
    else:
        logger.info("Serving located records from %s (JSON fallback mode)", DATA_DIR)
    yield
    db.close_pool()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LifeLink Geolocation API",
    version=__version__,
    description="Proximity search, coverage analytics and urgency scoring for blood donation coordination",
    lifespan=lifespan,
)

app.state.urgency_config = load_urgency_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(request_logging_middleware)


# ---------------------------------------------------------------------------
# Error envelopes: {"success": false, "message": ...}
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        problems.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request: " + "; ".join(problems)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


app.include_router(health.router)
app.include_router(geolocation.router)
app.include_router(alerts.router)
app.include_router(community.router)
app.include_router(hospitals.router)
app.include_router(urgency.router)

"""Community post endpoints (nearby posts)."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ..helpers import ok, parse_number, parse_timestamp, require_center
from ..queries import find_nearby

logger = logging.getLogger(__name__)

router = APIRouter()

URGENCY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def post_result(rec: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": rec.get("id"),
        "authorName": rec.get("author_name"),
        "title": rec.get("title"),
        "content": rec.get("content"),
        "type": rec.get("type"),
        "bloodGroup": rec.get("blood_group"),
        "urgency": rec.get("urgency"),
        "status": rec.get("status"),
        "location": rec.get("location"),
        "createdAt": rec.get("created_at"),
        "distance": round(rec["distance_km"], 2),
    }


def rank_posts(posts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Critical first, then high, medium, low; newest first within a level."""
    ranked = sorted(posts, key=lambda p: parse_timestamp(p.get("created_at")), reverse=True)
    ranked.sort(key=lambda p: URGENCY_RANK.get(p.get("urgency"), len(URGENCY_RANK)))
    return ranked


@router.get("/api/community/nearby")
async def nearby_posts(
    latitude: str | None = Query(None),
    longitude: str | None = Query(None),
    radius: str | None = Query(None, description="Search radius in km (default 50)"),
) -> dict[str, Any]:
    """Active community posts around a point."""
    center = require_center(latitude, longitude, missing_message="Location coordinates required")
    radius_km = parse_number(radius, 50.0, "radius")

    try:
        nearby = find_nearby("community_posts", center, radius_km, {"status": "active"}, limit=None)
    except Exception:
        logger.exception("Community nearby query failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve nearby posts")

    posts = [post_result(p) for p in rank_posts(nearby)]
    return ok("Nearby posts retrieved successfully", {"posts": posts, "count": len(posts)})

"""Urgency scoring endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from ..helpers import ok
from ..models import UrgencyRequest
from ...algorithms.urgency import score_urgency

router = APIRouter()


@router.post("/api/urgency/score")
async def urgency_score(request: Request, req: UrgencyRequest) -> dict[str, Any]:
    """Score a blood request 0–100 with a factor breakdown.  Nothing is stored."""
    result = score_urgency(
        {
            "blood_group": req.blood_group,
            "units_required": req.units_required,
            "expiry_hours": req.expiry_hours,
            "nearby_stock": [s.model_dump() for s in req.nearby_stock] if req.nearby_stock else None,
        },
        request.app.state.urgency_config,
    )
    return ok("Urgency score computed", result.to_dict())

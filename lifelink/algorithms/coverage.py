"""
LifeLink — Area Coverage Scoring

Turns counts of nearby facilities into a 0–100 coverage score and
qualitative insights.  The counts come from independent proximity queries
(see lifelink.api.analytics); this module only does the arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


HOSPITAL_WEIGHT = 10
EMERGENCY_HOSPITAL_WEIGHT = 20
CAMP_WEIGHT = 5


def coverage_score(hospitals: int, emergency_hospitals: int, camps: int) -> int:
    """min(100, hospitals×10 + emergency_hospitals×20 + camps×5)."""
    raw = (
        hospitals * HOSPITAL_WEIGHT
        + emergency_hospitals * EMERGENCY_HOSPITAL_WEIGHT
        + camps * CAMP_WEIGHT
    )
    return min(100, round(raw))


def hospital_density(hospitals: int) -> str:
    if hospitals > 5:
        return "High"
    if hospitals > 2:
        return "Moderate"
    return "Low"


def camp_activity(camps: int) -> str:
    if camps > 3:
        return "Very Active"
    if camps > 0:
        return "Active"
    return "Low"


def coverage_insights(hospitals: int, emergency_hospitals: int, camps: int) -> dict[str, str]:
    return {
        "emergencyCoverage": "Good" if emergency_hospitals > 0 else "Limited",
        "hospitalDensity": hospital_density(hospitals),
        "campActivity": camp_activity(camps),
        "recommendation": (
            "Consider expanding search radius for emergency support"
            if emergency_hospitals == 0
            else "Good coverage in your area"
        ),
    }


@dataclass
class CoverageReport:
    """Coverage of an area.  Counts are best-effort: each comes from its own query."""

    total_hospitals: int
    emergency_hospitals: int
    upcoming_camps: int
    coverage_score: int
    insights: dict[str, str]
    nearest_emergency: dict[str, Any] | None = None
    upcoming_camp_details: list[dict[str, Any]] | None = None

    @classmethod
    def from_counts(
        cls,
        total_hospitals: int,
        emergency_hospitals: int,
        upcoming_camps: int,
        **extra: Any,
    ) -> "CoverageReport":
        return cls(
            total_hospitals=total_hospitals,
            emergency_hospitals=emergency_hospitals,
            upcoming_camps=upcoming_camps,
            coverage_score=coverage_score(total_hospitals, emergency_hospitals, upcoming_camps),
            insights=coverage_insights(total_hospitals, emergency_hospitals, upcoming_camps),
            **extra,
        )

    def statistics(self) -> dict[str, int]:
        return {
            "totalHospitals": self.total_hospitals,
            "emergencyHospitals": self.emergency_hospitals,
            "upcomingCamps": self.upcoming_camps,
            "coverageScore": self.coverage_score,
        }

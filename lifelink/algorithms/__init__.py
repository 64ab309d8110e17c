"""LifeLink — Proximity and Urgency Algorithms."""

from .geo_distance import (
    EARTH_RADIUS_KM,
    GeoPoint,
    InvalidCoordinates,
    bounding_box,
    distance_between,
    distance_km,
    estimated_travel_minutes,
    parse_center,
)
from .proximity import (
    find_nearby_candidates,
    matches_filters,
)
from .urgency import (
    RARITY_WEIGHTS_ALERT,
    RARITY_WEIGHTS_REQUEST,
    UrgencyConfig,
    UrgencyScore,
    load_urgency_config,
    score_civic_alert,
    score_urgency,
    urgency_label,
)
from .coverage import (
    CoverageReport,
    coverage_insights,
    coverage_score,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "GeoPoint",
    "InvalidCoordinates",
    "bounding_box",
    "distance_between",
    "distance_km",
    "estimated_travel_minutes",
    "parse_center",
    "find_nearby_candidates",
    "matches_filters",
    "RARITY_WEIGHTS_ALERT",
    "RARITY_WEIGHTS_REQUEST",
    "UrgencyConfig",
    "UrgencyScore",
    "load_urgency_config",
    "score_civic_alert",
    "score_urgency",
    "urgency_label",
    "CoverageReport",
    "coverage_insights",
    "coverage_score",
]

"""
LifeLink — Blood Request Urgency Scoring

Computes a deterministic 0–100 urgency score for a blood request from four
independent signals:

    rarity     (0–30)  how rare the requested blood group is
    quantity   (0–25)  how many units are needed
    expiry     (0–25)  how soon the request expires
    stock      (0–20)  how little matching stock exists nearby

The sub-scores are summed, clamped to [0, 100] and mapped to a label
(LOW / MEDIUM / HIGH / CRITICAL).  A factor breakdown with human-readable
reasons accompanies every score.

Civic alerts use a separate, older scorer (score_civic_alert) with its own
rarity table.  The two tables are intentionally kept apart.

Dependencies:
    pip install pyyaml
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults (overridden by urgency_rules.yaml at runtime)
# ---------------------------------------------------------------------------

RARITY_WEIGHTS_REQUEST: dict[str, int] = {
    "O-": 30,
    "AB-": 28,
    "B-": 25,
    "A-": 22,
    "AB+": 15,
    "B+": 12,
    "O+": 10,
    "A+": 5,
}

RARITY_WEIGHTS_ALERT: dict[str, int] = {
    "AB-": 25,
    "B-": 20,
    "A-": 15,
    "O-": 15,
    "AB+": 10,
    "A+": 5,
    "B+": 5,
    "O+": 5,
}

DEFAULT_RARITY_WEIGHT = 10

# (minimum units, points) — first match wins
_DEFAULT_QUANTITY_STEPS: list[tuple[float, int]] = [
    (10, 25),
    (7, 20),
    (5, 15),
    (3, 10),
    (2, 5),
]
_DEFAULT_QUANTITY_FLOOR = 2

# (hours strictly below, points) — first match wins
_DEFAULT_EXPIRY_STEPS: list[tuple[float, int]] = [
    (24, 25),
    (48, 20),
    (72, 15),
    (120, 10),
    (168, 5),
]

# (nearby units strictly below N × needed, points) — first match wins
_DEFAULT_STOCK_STEPS: list[tuple[float, int]] = [
    (1, 15),
    (2, 10),
    (3, 5),
]
_DEFAULT_STOCK_NONE = 20
_DEFAULT_STOCK_FLOOR = 2

_DEFAULT_LABELS: list[tuple[int, str]] = [
    (80, "CRITICAL"),
    (60, "HIGH"),
    (40, "MEDIUM"),
]

MAX_SCORES = {
    "blood_group_rarity": 30,
    "quantity_required": 25,
    "expiry_proximity": 25,
    "nearby_stock": 20,
}

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "urgency_rules.yaml"


# ---------------------------------------------------------------------------
# Configuration loader
# ---------------------------------------------------------------------------


def _steps(raw: list | None, default: list[tuple[float, int]]) -> list[tuple[float, int]]:
    if not raw:
        return list(default)
    return [(float(item["threshold"]), int(item["points"])) for item in raw]


@dataclass
class UrgencyConfig:
    """Scoring tables for score_urgency, loadable from urgency_rules.yaml."""

    rarity_weights: dict[str, int] = field(default_factory=lambda: dict(RARITY_WEIGHTS_REQUEST))
    default_rarity: int = DEFAULT_RARITY_WEIGHT
    quantity_steps: list[tuple[float, int]] = field(default_factory=lambda: list(_DEFAULT_QUANTITY_STEPS))
    quantity_floor: int = _DEFAULT_QUANTITY_FLOOR
    expiry_steps: list[tuple[float, int]] = field(default_factory=lambda: list(_DEFAULT_EXPIRY_STEPS))
    stock_steps: list[tuple[float, int]] = field(default_factory=lambda: list(_DEFAULT_STOCK_STEPS))
    stock_none: int = _DEFAULT_STOCK_NONE
    stock_floor: int = _DEFAULT_STOCK_FLOOR
    labels: list[tuple[int, str]] = field(default_factory=lambda: list(_DEFAULT_LABELS))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "UrgencyConfig":
        """Load configuration from a YAML file.  Missing sections keep defaults."""
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        rarity = raw.get("rarity", {})
        quantity = raw.get("quantity", {})
        stock = raw.get("nearby_stock", {})
        labels_raw = raw.get("labels")

        labels = list(_DEFAULT_LABELS)
        if labels_raw:
            labels = sorted(
                ((int(score), str(name)) for name, score in labels_raw.items()),
                reverse=True,
            )

        return cls(
            rarity_weights={**RARITY_WEIGHTS_REQUEST, **(rarity.get("weights") or {})},
            default_rarity=rarity.get("default", DEFAULT_RARITY_WEIGHT),
            quantity_steps=_steps(quantity.get("steps"), _DEFAULT_QUANTITY_STEPS),
            quantity_floor=quantity.get("floor", _DEFAULT_QUANTITY_FLOOR),
            expiry_steps=_steps(raw.get("expiry_hours", {}).get("steps"), _DEFAULT_EXPIRY_STEPS),
            stock_steps=_steps(stock.get("steps"), _DEFAULT_STOCK_STEPS),
            stock_none=stock.get("none_nearby", _DEFAULT_STOCK_NONE),
            stock_floor=stock.get("floor", _DEFAULT_STOCK_FLOOR),
            labels=labels,
        )


def load_urgency_config(path: str | Path | None = None) -> UrgencyConfig:
    """
    Resolve the active scoring configuration.

    Order: explicit path, then LIFELINK_URGENCY_RULES, then the bundled
    config/urgency_rules.yaml.  Falls back to in-code defaults when no file
    exists.
    """
    candidate = path or os.environ.get("LIFELINK_URGENCY_RULES") or DEFAULT_RULES_PATH
    candidate = Path(candidate)
    if not candidate.exists():
        logger.info("No urgency rules at %s — using built-in defaults", candidate)
        return UrgencyConfig()
    logger.info("Loading urgency rules from %s", candidate)
    return UrgencyConfig.from_yaml(candidate)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass
class UrgencyFactor:
    factor: str
    score: int
    max_score: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "factor": self.factor,
            "score": self.score,
            "maxScore": self.max_score,
            "reason": self.reason,
        }


@dataclass
class UrgencyScore:
    """Urgency of one blood request.  Never authoritative state: recompute from inputs."""

    score: int
    label: str
    breakdown: list[UrgencyFactor]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "breakdown": [f.to_dict() for f in self.breakdown],
        }


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def rarity_score(blood_group: str | None, config: UrgencyConfig) -> UrgencyFactor:
    if blood_group in config.rarity_weights:
        points = config.rarity_weights[blood_group]
        reason = f"Blood group {blood_group} rarity weight"
    else:
        points = config.default_rarity
        reason = f"Unknown blood group {blood_group!r}, default weight applied"
    return UrgencyFactor("blood_group_rarity", points, MAX_SCORES["blood_group_rarity"], reason)


def quantity_score(units_required: float | None, config: UrgencyConfig) -> UrgencyFactor:
    units = units_required or 0
    points = config.quantity_floor
    for minimum, step_points in config.quantity_steps:
        if units >= minimum:
            points = step_points
            break
    return UrgencyFactor(
        "quantity_required",
        points,
        MAX_SCORES["quantity_required"],
        f"{units:g} unit(s) required",
    )


def expiry_score(expiry_hours: float | None, config: UrgencyConfig) -> UrgencyFactor:
    if expiry_hours is None:
        return UrgencyFactor(
            "expiry_proximity", 0, MAX_SCORES["expiry_proximity"], "No expiry deadline given"
        )
    points = 0
    for below, step_points in config.expiry_steps:
        if expiry_hours < below:
            points = step_points
            break
    return UrgencyFactor(
        "expiry_proximity",
        points,
        MAX_SCORES["expiry_proximity"],
        f"Expires in {expiry_hours:g} hour(s)",
    )


def _stock_units(entry: Any) -> float:
    if isinstance(entry, dict):
        return float(entry.get("units") or entry.get("units_available") or 0)
    return float(entry or 0)


def stock_score(
    nearby_stock: list | None,
    units_required: float | None,
    config: UrgencyConfig,
) -> UrgencyFactor:
    if not nearby_stock:
        return UrgencyFactor(
            "nearby_stock",
            config.stock_none,
            MAX_SCORES["nearby_stock"],
            "No matching stock found nearby",
        )
    total = sum(_stock_units(entry) for entry in nearby_stock)
    needed = units_required or 0
    points = config.stock_floor
    for multiple, step_points in config.stock_steps:
        if total < multiple * needed:
            points = step_points
            break
    return UrgencyFactor(
        "nearby_stock",
        points,
        MAX_SCORES["nearby_stock"],
        f"{total:g} unit(s) available nearby for {needed:g} needed",
    )


def urgency_label(score: int, config: UrgencyConfig | None = None) -> str:
    """Map a 0–100 score to LOW / MEDIUM / HIGH / CRITICAL."""
    labels = config.labels if config is not None else _DEFAULT_LABELS
    for minimum, name in labels:
        if score >= minimum:
            return name
    return "LOW"


# ---------------------------------------------------------------------------
# Scorers
# ---------------------------------------------------------------------------


def score_urgency(
    request: dict[str, Any],
    config: UrgencyConfig | None = None,
) -> UrgencyScore:
    """
    Score a blood request.

    Parameters
    ----------
    request : dict
        Expected keys: blood_group, units_required, and optionally
        expiry_hours (hours until the request lapses) and nearby_stock
        (list of {"units": n} records of matching stock around the requester).
    config : UrgencyConfig, optional
        Scoring tables. Uses defaults if not provided.
    """
    if config is None:
        config = UrgencyConfig()

    units = request.get("units_required")
    breakdown = [
        rarity_score(request.get("blood_group"), config),
        quantity_score(units, config),
        expiry_score(request.get("expiry_hours"), config),
        stock_score(request.get("nearby_stock"), units, config),
    ]

    total = int(min(100, max(0, sum(f.score for f in breakdown))))
    return UrgencyScore(score=total, label=urgency_label(total, config), breakdown=breakdown)


def score_civic_alert(alert: dict[str, Any]) -> int:
    """
    Urgency snapshot stored on a civic alert at creation time.

    Starts from 50 and adds rarity (RARITY_WEIGHTS_ALERT), quantity and
    alert-type bonuses; clamped to [0, 100].
    """
    score = 50

    score += RARITY_WEIGHTS_ALERT.get(alert.get("blood_group") or "", 0)

    units = alert.get("units_required")
    if units:
        if units >= 10:
            score += 20
        elif units >= 5:
            score += 10
        else:
            score += 5

    alert_type = alert.get("alert_type")
    if alert_type == "SHORTAGE":
        score += 15
    elif alert_type == "EXPIRY":
        hours = alert.get("expiry_warning_hours")
        if hours is not None:
            if hours <= 24:
                score += 20
            elif hours <= 48:
                score += 10

    return min(max(score, 0), 100)

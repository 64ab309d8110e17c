"""
LifeLink — Great-Circle Distance

Single Haversine implementation shared by every proximity feature
(nearby hospitals, camps, civic alerts, community posts, camp transfers).

Locations are stored as GeoJSON points, whose coordinate order is
[longitude, latitude].  GeoPoint.from_geojson / to_geojson are the only
places that order is unpacked.

No external geo-libraries required — pure math with stdlib.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0

# Average road speed used for camp → hospital transfer estimates
DEFAULT_TRAVEL_SPEED_KMH = 40.0


class InvalidCoordinates(ValueError):
    """Raised when a latitude/longitude pair is missing or unusable."""


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate pair."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Check whether both values are finite and inside WGS84 ranges."""
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    @classmethod
    def from_geojson(cls, geometry: dict[str, Any] | None) -> "GeoPoint | None":
        """
        Build a GeoPoint from a GeoJSON Point ({"coordinates": [lon, lat]}).

        Returns None when the geometry is absent or has no usable coordinates.
        """
        if not geometry:
            return None
        coords = geometry.get("coordinates")
        if not coords or len(coords) < 2 or coords[0] is None or coords[1] is None:
            return None
        lon, lat = coords[0], coords[1]
        return cls(latitude=float(lat), longitude=float(lon))

    def as_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


# ---------------------------------------------------------------------------
# Core distance calculation
# ---------------------------------------------------------------------------


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute the great-circle distance in kilometres between two WGS84 points
    using the Haversine formula.

    Inputs are not range-checked; callers validate coordinates first.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(point_a: GeoPoint, point_b: GeoPoint) -> float:
    """distance_km for two GeoPoint values."""
    return distance_km(point_a.latitude, point_a.longitude, point_b.latitude, point_b.longitude)


def estimated_travel_minutes(
    dist_km: float,
    speed_kmh: float = DEFAULT_TRAVEL_SPEED_KMH,
) -> int:
    """Whole minutes needed to cover dist_km at a constant speed."""
    return round(dist_km / speed_kmh * 60)


# ---------------------------------------------------------------------------
# Candidate pre-filtering
# ---------------------------------------------------------------------------


def bounding_box(
    center: GeoPoint,
    radius_km: float,
) -> tuple[float, float, float, float]:
    """
    Return a lat/lon bounding box that encloses a circle of the given radius
    around the center.

    Returns (min_lat, max_lat, min_lon, max_lon) in degrees.

    Near the poles or across the antimeridian the longitude span widens to
    the full [-180, 180] range.
    """
    angular = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular)
    min_lat = center.latitude - lat_delta
    max_lat = center.latitude + lat_delta

    cos_lat = math.cos(math.radians(center.latitude))
    if max_lat >= 90.0 or min_lat <= -90.0 or cos_lat < 1e-9:
        return (max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0)

    ratio = math.sin(angular) / cos_lat
    if angular >= math.pi / 2 or ratio >= 1.0:
        return (min_lat, max_lat, -180.0, 180.0)
    lon_delta = math.degrees(math.asin(ratio))
    min_lon = center.longitude - lon_delta
    max_lon = center.longitude + lon_delta
    # Circle crosses the antimeridian: keep every longitude
    if min_lon < -180.0 or max_lon > 180.0:
        return (min_lat, max_lat, -180.0, 180.0)
    return (min_lat, max_lat, min_lon, max_lon)


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def parse_center(latitude: Any, longitude: Any) -> GeoPoint:
    """
    Turn raw query-string values into a validated GeoPoint.

    Raises InvalidCoordinates("Latitude and longitude are required") when a
    value is missing or blank, and InvalidCoordinates("Invalid coordinates")
    when it cannot be parsed or falls outside WGS84 ranges.
    """
    if latitude is None or longitude is None:
        raise InvalidCoordinates("Latitude and longitude are required")
    if isinstance(latitude, str) and not latitude.strip():
        raise InvalidCoordinates("Latitude and longitude are required")
    if isinstance(longitude, str) and not longitude.strip():
        raise InvalidCoordinates("Latitude and longitude are required")

    try:
        point = GeoPoint(latitude=float(latitude), longitude=float(longitude))
    except (TypeError, ValueError):
        raise InvalidCoordinates("Invalid coordinates") from None

    if not point.is_valid():
        raise InvalidCoordinates("Invalid coordinates")
    return point

"""Pydantic request models for the LifeLink API.

Field names are snake_case; the aliases match the camelCase keys sent by
the web client.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

BloodGroup = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]


class GeoJSONPoint(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(
        ...,
        description="[longitude, latitude] — GeoJSON order",
        min_length=2,
        max_length=2,
    )

    @field_validator("coordinates")
    @classmethod
    def _in_range(cls, value: list[float]) -> list[float]:
        lon, lat = value
        if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
            raise ValueError("coordinates must be [longitude, latitude] within WGS84 ranges")
        return value


class CivicAlertCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    alert_type: Literal["SHORTAGE", "EXPIRY", "CAMP", "COMMUNITY_NOTICE"] = Field(
        ...,
        alias="alertType",
        description="Kind of alert",
    )
    blood_group: BloodGroup | None = Field(
        None,
        alias="bloodGroup",
    )
    hospital_id: str | None = Field(
        None,
        alias="hospitalId",
        description="Issuing hospital; its name and location fill in missing fields",
    )
    location: GeoJSONPoint | None = Field(
        None,
        description="Alert location; defaults to the hospital's location",
    )
    units_required: int | None = Field(None, alias="unitsRequired", ge=0)
    expiry_warning_hours: float | None = Field(None, alias="expiryWarningHours", ge=0)
    event_date: datetime | None = Field(
        None,
        alias="eventDate",
        description="ISO 8601 date of the related event (camps, notices)",
    )
    description: str = Field(..., min_length=1)


class AlertStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(..., alias="isActive")


class StockRecord(BaseModel):
    units: float = Field(..., ge=0, description="Units of matching blood in one nearby inventory")


class UrgencyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blood_group: str = Field(..., alias="bloodGroup")
    units_required: int = Field(..., alias="unitsRequired", ge=0)
    expiry_hours: float | None = Field(
        None,
        alias="expiryHours",
        description="Hours until the request lapses",
    )
    nearby_stock: list[StockRecord] | None = Field(
        None,
        alias="nearbyStock",
        description="Matching stock records around the requester",
    )

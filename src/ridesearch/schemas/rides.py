"""Pydantic request/response models for ride indexing and search endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# One year either side of the desired departure.
MAX_TIME_WINDOW_MINUTES = 525_600


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


class GeoPointModel(CamelModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class RouteGeometry(CamelModel):
    """GeoJSON LineString with ``[lng, lat]`` positions."""

    type: Literal["LineString"] = "LineString"
    coordinates: List[tuple[float, float]] = Field(..., min_length=2)

    @field_validator("coordinates")
    @classmethod
    def validate_positions(cls, value: List[tuple[float, float]]) -> List[tuple[float, float]]:
        for lng, lat in value:
            if not -180.0 <= lng <= 180.0 or not -90.0 <= lat <= 90.0:
                raise ValueError(f"route position [{lng}, {lat}] is outside valid longitude/latitude range")
        return value


class RideIndexRequest(CamelModel):
    ride_id: str = Field(..., min_length=1)
    driver_id: str = Field(..., min_length=1)
    driver_name: str = Field(..., min_length=1)
    seats_available: int = Field(..., ge=0)
    fare: float = Field(..., ge=0.0)
    polyline: Optional[str] = Field(default=None, description="Encoded polyline, stored as-is.")
    start_point: GeoPointModel
    end_point: GeoPointModel
    route: RouteGeometry
    date_time: datetime = Field(..., description="Scheduled departure time.")


class RideIndexResponse(CamelModel):
    ride_id: str
    status: Literal["indexed", "deleted"]


class RideSearchRequest(CamelModel):
    pickup: GeoPointModel
    drop: GeoPointModel
    date_time: datetime = Field(..., description="Desired departure time.")
    radius_km: Optional[float] = Field(
        default=None, description="Pickup/drop proximity in km. Missing or non-positive uses the default (5 km)."
    )
    time_window_minutes: Optional[int] = Field(
        default=None,
        le=MAX_TIME_WINDOW_MINUTES,
        description="Departure window half-width. Missing or non-positive uses the default (60 min)."
    )


class RideSearchResponse(CamelModel):
    ride_id: str
    driver_name: str
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    start_time: datetime
    available_seats: int
    fare: float
    match_score: float

"""Domain models for ride offers, searches and match results."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class RideOffer:
    """Snapshot of a published ride as handed to the matching engine.

    ``route`` holds ``(lng, lat)`` pairs in GeoJSON axis order.
    """

    ride_id: str
    driver_id: str
    driver_name: str
    seats_available: int
    fare: float
    start_point: GeoPoint
    end_point: GeoPoint
    route: tuple[tuple[float, float], ...]
    departure_time: datetime
    polyline: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """A rider's search. Build through ``resolve_search_request`` to get defaults applied."""

    pickup: GeoPoint
    drop: GeoPoint
    desired_time: datetime
    radius_km: float = 5.0
    time_window_minutes: int = 60


@dataclass(frozen=True, slots=True)
class MatchResult:
    ride_id: str
    driver_name: str
    start_time: datetime
    available_seats: int
    fare: float
    match_score: float

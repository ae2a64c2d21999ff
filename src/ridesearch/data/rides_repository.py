"""Ride storage: Supabase table when configured, in-memory store otherwise.

The matching engine only reads from here. Writes come from the index/delete
endpoints.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Protocol

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import GeoPoint, RideOffer, ensure_utc

logger = logging.getLogger(__name__)


class RideRepository(Protocol):
    def save(self, ride: RideOffer) -> RideOffer: ...

    def delete(self, ride_id: str) -> bool: ...

    def get(self, ride_id: str) -> RideOffer | None: ...

    def list_rides(
        self,
        departure_from: datetime | None = None,
        departure_to: datetime | None = None,
    ) -> tuple[RideOffer, ...]: ...


def ride_to_row(ride: RideOffer) -> dict[str, Any]:
    return {
        "ride_id": ride.ride_id,
        "driver_id": ride.driver_id,
        "driver_name": ride.driver_name,
        "seats_available": ride.seats_available,
        "fare": ride.fare,
        "polyline": ride.polyline,
        "start_lat": ride.start_point.lat,
        "start_lng": ride.start_point.lng,
        "end_lat": ride.end_point.lat,
        "end_lng": ride.end_point.lng,
        "route": {"type": "LineString", "coordinates": [list(coord) for coord in ride.route]},
        "departure_time": ensure_utc(ride.departure_time).isoformat(),
    }


def ride_from_row(row: dict[str, Any]) -> RideOffer:
    route = row.get("route") or {}
    if isinstance(route, str):
        route = json.loads(route)
    departure = row["departure_time"]
    if isinstance(departure, str):
        departure = datetime.fromisoformat(departure.replace("Z", "+00:00"))
    return RideOffer(
        ride_id=str(row["ride_id"]),
        driver_id=str(row["driver_id"]),
        driver_name=str(row["driver_name"]),
        seats_available=int(row["seats_available"]),
        fare=float(row["fare"]),
        start_point=GeoPoint(float(row["start_lat"]), float(row["start_lng"])),
        end_point=GeoPoint(float(row["end_lat"]), float(row["end_lng"])),
        route=tuple((float(lng), float(lat)) for lng, lat in route.get("coordinates", [])),
        departure_time=ensure_utc(departure),
        polyline=row.get("polyline"),
    )


def _in_departure_range(ride: RideOffer, departure_from: datetime | None, departure_to: datetime | None) -> bool:
    departure = ensure_utc(ride.departure_time)
    if departure_from is not None and departure < ensure_utc(departure_from):
        return False
    if departure_to is not None and departure > ensure_utc(departure_to):
        return False
    return True


class InMemoryRideRepository:
    """Thread-safe dict-backed store, optionally seeded from a JSON file of rows."""

    def __init__(self, rides: Iterable[RideOffer] = ()) -> None:
        self._lock = threading.Lock()
        self._rides: dict[str, RideOffer] = {ride.ride_id: ride for ride in rides}

    @classmethod
    def from_file(cls, source: Path) -> "InMemoryRideRepository":
        if not source.exists():
            raise FileNotFoundError(f"Ride seed file not found: {source}")
        with source.open("r", encoding="utf-8") as handle:
            rows = json.load(handle)
        if not isinstance(rows, list):
            raise ValueError(f"Ride seed file '{source}' must contain a JSON array.")

        rides: list[RideOffer] = []
        for row in rows:
            try:
                rides.append(ride_from_row(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid ride row: {e}")
        logger.info(f"Loaded {len(rides)} rides from {source}")
        return cls(rides)

    def save(self, ride: RideOffer) -> RideOffer:
        with self._lock:
            self._rides[ride.ride_id] = ride
        return ride

    def delete(self, ride_id: str) -> bool:
        with self._lock:
            return self._rides.pop(ride_id, None) is not None

    def get(self, ride_id: str) -> RideOffer | None:
        with self._lock:
            return self._rides.get(ride_id)

    def list_rides(
        self,
        departure_from: datetime | None = None,
        departure_to: datetime | None = None,
    ) -> tuple[RideOffer, ...]:
        with self._lock:
            snapshot = tuple(self._rides.values())
        return tuple(ride for ride in snapshot if _in_departure_range(ride, departure_from, departure_to))


class SupabaseRideRepository:
    """Ride store backed by a Supabase table keyed by ``ride_id``."""

    def __init__(self, client: Any, table: str | None = None) -> None:
        self.client = client
        self.table = table or settings.rides_table

    def save(self, ride: RideOffer) -> RideOffer:
        self.client.table(self.table).upsert(ride_to_row(ride)).execute()
        return ride

    def delete(self, ride_id: str) -> bool:
        response = self.client.table(self.table).delete().eq("ride_id", ride_id).execute()
        return bool(response.data)

    def get(self, ride_id: str) -> RideOffer | None:
        response = self.client.table(self.table).select("*").eq("ride_id", ride_id).limit(1).execute()
        if not response.data:
            return None
        return ride_from_row(response.data[0])

    def list_rides(
        self,
        departure_from: datetime | None = None,
        departure_to: datetime | None = None,
    ) -> tuple[RideOffer, ...]:
        # Seats and time are pushed into the query; geometry is checked by the matcher.
        query = self.client.table(self.table).select("*").gt("seats_available", 0)
        if departure_from is not None:
            query = query.gte("departure_time", ensure_utc(departure_from).isoformat())
        if departure_to is not None:
            query = query.lte("departure_time", ensure_utc(departure_to).isoformat())
        response = query.execute()

        rides: list[RideOffer] = []
        for row in response.data or []:
            try:
                rides.append(ride_from_row(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid ride row {row.get('ride_id')!r}: {e}")
        return tuple(rides)


@lru_cache()
def get_ride_repository() -> RideRepository:
    """Database-first ride store, falling back to memory (optionally seeded from file)."""

    client = get_supabase_client()
    if client is not None:
        logger.info(f"Using Supabase table '{settings.rides_table}' for rides")
        return SupabaseRideRepository(client)
    if settings.rides_seed_file is not None:
        return InMemoryRideRepository.from_file(settings.rides_seed_file)
    return InMemoryRideRepository()

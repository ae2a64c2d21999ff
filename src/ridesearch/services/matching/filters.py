"""Hard eligibility predicates that narrow published rides to candidates.

Each predicate is a pure ``(request, ride) -> bool`` function so it can be
tested on its own. ``CandidateFilter`` combines them by logical AND and can
also describe the same conjunction as a search-engine bool query for
adapters that evaluate it remotely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable

from ...config import settings
from ...models.domain import RideOffer, SearchRequest, ensure_utc
from ..geospatial import distance_km, segment_intersects_route

logger = logging.getLogger(__name__)

Predicate = Callable[[SearchRequest, RideOffer], bool]


def departure_bounds(request: SearchRequest) -> tuple[datetime, datetime]:
    desired = ensure_utc(request.desired_time)
    window = timedelta(minutes=request.time_window_minutes)
    return desired - window, desired + window


def within_time_window(request: SearchRequest, ride: RideOffer) -> bool:
    earliest, latest = departure_bounds(request)
    return earliest <= ensure_utc(ride.departure_time) <= latest


def has_available_seats(request: SearchRequest, ride: RideOffer) -> bool:
    return ride.seats_available > 0


def near_pickup(request: SearchRequest, ride: RideOffer) -> bool:
    return distance_km(request.pickup, ride.start_point) <= request.radius_km


def near_drop(request: SearchRequest, ride: RideOffer) -> bool:
    return distance_km(request.drop, ride.end_point) <= request.radius_km


def crosses_route(request: SearchRequest, ride: RideOffer) -> bool:
    return segment_intersects_route(request.pickup, request.drop, ride.route)


# Cheap checks first so matches() short-circuits before any geometry work.
PREDICATES: tuple[tuple[str, Predicate], ...] = (
    ("time_window", within_time_window),
    ("seats_available", has_available_seats),
    ("pickup_proximity", near_pickup),
    ("drop_proximity", near_drop),
    ("route_intersection", crosses_route),
)


def apply_search_defaults(request: SearchRequest) -> SearchRequest:
    """Replace a missing or non-positive radius/window with the configured defaults."""

    radius_km = request.radius_km
    window = request.time_window_minutes
    if radius_km is None or radius_km <= 0:
        radius_km = settings.default_radius_km
    if window is None or window <= 0:
        window = settings.default_time_window_minutes
    if radius_km == request.radius_km and window == request.time_window_minutes:
        return request
    return replace(request, radius_km=float(radius_km), time_window_minutes=int(window))


@dataclass(frozen=True, slots=True)
class CandidateFilter:
    """Conjunction of the hard predicates for one resolved search request."""

    request: SearchRequest
    predicates: tuple[tuple[str, Predicate], ...] = PREDICATES

    @property
    def departure_window(self) -> tuple[datetime, datetime]:
        return departure_bounds(self.request)

    def matches(self, ride: RideOffer) -> bool:
        return all(predicate(self.request, ride) for _, predicate in self.predicates)

    def failed_predicates(self, ride: RideOffer) -> list[str]:
        return [name for name, predicate in self.predicates if not predicate(self.request, ride)]

    def apply(self, rides: Iterable[RideOffer]) -> list[RideOffer]:
        candidates: list[RideOffer] = []
        for ride in rides:
            if self.matches(ride):
                candidates.append(ride)
            elif logger.isEnabledFor(logging.DEBUG):
                logger.debug("Ride %s rejected: %s", ride.ride_id, ", ".join(self.failed_predicates(ride)))
        return candidates

    def to_query(self) -> dict:
        """Describe the conjunction as an Elasticsearch-style ``bool.filter`` query."""

        request = self.request
        earliest, latest = self.departure_window
        distance = f"{request.radius_km:.3f}km"
        return {
            "bool": {
                "filter": [
                    {"range": {"dateTime": {"gte": earliest.isoformat(), "lte": latest.isoformat()}}},
                    {"range": {"seatsAvailable": {"gt": 0}}},
                    {
                        "geo_distance": {
                            "distance": distance,
                            "startPoint": {"lat": request.pickup.lat, "lon": request.pickup.lng},
                        }
                    },
                    {
                        "geo_distance": {
                            "distance": distance,
                            "endPoint": {"lat": request.drop.lat, "lon": request.drop.lng},
                        }
                    },
                    {
                        "geo_shape": {
                            "route": {
                                "shape": {
                                    "type": "linestring",
                                    "coordinates": [
                                        [request.pickup.lng, request.pickup.lat],
                                        [request.drop.lng, request.drop.lat],
                                    ],
                                },
                                "relation": "intersects",
                            }
                        }
                    },
                ]
            }
        }


def build_candidate_filter(request: SearchRequest) -> CandidateFilter:
    return CandidateFilter(apply_search_defaults(request))


def filter_candidates(request: SearchRequest, rides: Iterable[RideOffer]) -> list[RideOffer]:
    """Return the rides passing every predicate, preserving input order."""

    return build_candidate_filter(request).apply(rides)

"""Relevance scoring and ordering of candidate rides."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Sequence

from ...errors import SearchCancelledError
from ...models.domain import MatchResult, RideOffer, SearchRequest, ensure_utc
from ..geospatial import distance_km

TIME_WEIGHT = 0.5
DISTANCE_WEIGHT = 0.4
SEATS_WEIGHT = 0.1

# Score decays to zero at these offsets.
TIME_HORIZON_MINUTES = 120.0
DISTANCE_HORIZON_KM = 20.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def minutes_between(first: datetime, second: datetime) -> int:
    """Whole minutes elapsed between two instants, truncated toward zero."""

    seconds = (ensure_utc(second) - ensure_utc(first)).total_seconds()
    return int(seconds / 60)


def time_score(request: SearchRequest, ride: RideOffer) -> float:
    minutes = abs(minutes_between(request.desired_time, ride.departure_time))
    return max(0.0, 1.0 - minutes / TIME_HORIZON_MINUTES)


def distance_score(request: SearchRequest, ride: RideOffer) -> float:
    combined_km = distance_km(request.pickup, ride.start_point) + distance_km(request.drop, ride.end_point)
    return max(0.0, 1.0 - combined_km / DISTANCE_HORIZON_KM)


def seats_score(ride: RideOffer) -> float:
    return 1.0 if ride.seats_available > 0 else 0.0


def score_ride(request: SearchRequest, ride: RideOffer) -> float:
    """Weighted composite of time, distance and seat signals in [0, 1]."""

    composite = (
        TIME_WEIGHT * time_score(request, ride)
        + DISTANCE_WEIGHT * distance_score(request, ride)
        + SEATS_WEIGHT * seats_score(ride)
    )
    return clamp(composite, 0.0, 1.0)


def rank_matches(
    request: SearchRequest,
    candidates: Sequence[RideOffer],
    cancel_event: threading.Event | None = None,
) -> list[MatchResult]:
    """Score every candidate and order by descending match score.

    Equal scores keep their candidate order. Raises ``SearchCancelledError``
    if ``cancel_event`` is set before scoring completes; no partial list is
    returned in that case.
    """

    results: list[MatchResult] = []
    for ride in candidates:
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelledError(f"Ranking cancelled after {len(results)} of {len(candidates)} candidates")
        results.append(
            MatchResult(
                ride_id=ride.ride_id,
                driver_name=ride.driver_name,
                start_time=ride.departure_time,
                available_seats=ride.seats_available,
                fare=ride.fare,
                match_score=score_ride(request, ride),
            )
        )
    results.sort(key=lambda result: result.match_score, reverse=True)
    return results

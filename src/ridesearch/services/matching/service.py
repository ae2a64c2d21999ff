"""Ride search orchestration service."""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime

from ...data.rides_repository import RideRepository
from ...errors import InvalidSearchRequestError
from ...models.domain import GeoPoint, MatchResult, SearchRequest, ensure_utc
from ..geospatial import validate_coordinate
from .filters import CandidateFilter, build_candidate_filter
from .scoring import rank_matches

logger = logging.getLogger(__name__)


def resolve_search_request(
    pickup: GeoPoint | None,
    drop: GeoPoint | None,
    desired_time: datetime | None,
    radius_km: float | None = None,
    time_window_minutes: int | None = None,
) -> SearchRequest:
    """Validate raw search inputs and build a request with defaults applied.

    Raises ``InvalidSearchRequestError`` naming the first offending field.
    """

    validate_coordinate(pickup, "pickup")
    validate_coordinate(drop, "drop")
    if desired_time is None:
        raise InvalidSearchRequestError("dateTime", "is required")

    request = SearchRequest(
        pickup=pickup,
        drop=drop,
        desired_time=ensure_utc(desired_time),
        radius_km=radius_km if radius_km is not None else 0.0,
        time_window_minutes=time_window_minutes if time_window_minutes is not None else 0,
    )
    return validate_search_request(request).request


def validate_search_request(request: SearchRequest) -> CandidateFilter:
    """Check every request field and return the filter built from the defaulted request.

    Raises ``InvalidSearchRequestError`` naming the first offending field.
    """

    validate_coordinate(request.pickup, "pickup")
    validate_coordinate(request.drop, "drop")
    if request.desired_time is None:
        raise InvalidSearchRequestError("dateTime", "is required")
    if request.radius_km is not None and not math.isfinite(request.radius_km):
        raise InvalidSearchRequestError("radiusKm", "must be a finite number")

    candidate_filter = build_candidate_filter(request)
    try:
        candidate_filter.departure_window
    except OverflowError as exc:
        raise InvalidSearchRequestError(
            "timeWindowMinutes", "departure window falls outside the supported date range"
        ) from exc
    return candidate_filter


def search_rides(
    request: SearchRequest,
    repository: RideRepository,
    cancel_event: threading.Event | None = None,
) -> list[MatchResult]:
    """Fetch published rides, keep the compatible ones and rank them.

    Repository failures propagate to the caller untouched.
    """

    candidate_filter = validate_search_request(request)
    resolved = candidate_filter.request
    earliest, latest = candidate_filter.departure_window

    rides = repository.list_rides(departure_from=earliest, departure_to=latest)
    candidates = candidate_filter.apply(rides)
    results = rank_matches(resolved, candidates, cancel_event=cancel_event)

    logger.info(
        "Ride search around (%.5f, %.5f) -> (%.5f, %.5f): %d fetched, %d candidates (radius=%.3fkm, window=%dmin)",
        resolved.pickup.lat,
        resolved.pickup.lng,
        resolved.drop.lat,
        resolved.drop.lng,
        len(rides),
        len(candidates),
        resolved.radius_km,
        resolved.time_window_minutes,
    )
    return results

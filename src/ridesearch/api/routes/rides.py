"""Ride indexing and search endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...data.rides_repository import RideRepository, get_ride_repository
from ...errors import InvalidSearchRequestError
from ...models.domain import GeoPoint, RideOffer, ensure_utc
from ...schemas.rides import (
    RideIndexRequest,
    RideIndexResponse,
    RideSearchRequest,
    RideSearchResponse,
)
from ...services.matching import resolve_search_request, search_rides

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rides"])


def _ride_from_payload(payload: RideIndexRequest) -> RideOffer:
    return RideOffer(
        ride_id=payload.ride_id,
        driver_id=payload.driver_id,
        driver_name=payload.driver_name,
        seats_available=payload.seats_available,
        fare=payload.fare,
        start_point=GeoPoint(payload.start_point.lat, payload.start_point.lng),
        end_point=GeoPoint(payload.end_point.lat, payload.end_point.lng),
        route=tuple(payload.route.coordinates),
        departure_time=ensure_utc(payload.date_time),
        polyline=payload.polyline,
    )


@router.post("/index/ride", response_model=RideIndexResponse, status_code=status.HTTP_200_OK)
def index_ride(
    payload: RideIndexRequest,
    repository: RideRepository = Depends(get_ride_repository),
) -> RideIndexResponse:
    try:
        saved = repository.save(_ride_from_payload(payload))
    except Exception as exc:
        logger.exception(f"Error indexing ride {payload.ride_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to index ride: {str(exc)}",
        ) from exc
    logger.info(f"Indexed ride {saved.ride_id} ({saved.seats_available} seats)")
    return RideIndexResponse(ride_id=saved.ride_id, status="indexed")


@router.delete("/index/ride/{ride_id}", response_model=RideIndexResponse, status_code=status.HTTP_200_OK)
def delete_ride(
    ride_id: str,
    repository: RideRepository = Depends(get_ride_repository),
) -> RideIndexResponse:
    try:
        removed = repository.delete(ride_id)
    except Exception as exc:
        logger.exception(f"Error deleting ride {ride_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete ride: {str(exc)}",
        ) from exc
    if not removed:
        # Deleting an unknown id is not an error, matching delete-by-id semantics.
        logger.info(f"Ride {ride_id} was not indexed; nothing to delete")
    return RideIndexResponse(ride_id=ride_id, status="deleted")


@router.post("/search/rides", response_model=List[RideSearchResponse], status_code=status.HTTP_200_OK)
def search(
    payload: RideSearchRequest,
    repository: RideRepository = Depends(get_ride_repository),
) -> List[RideSearchResponse]:
    try:
        request = resolve_search_request(
            pickup=GeoPoint(payload.pickup.lat, payload.pickup.lng),
            drop=GeoPoint(payload.drop.lat, payload.drop.lng),
            desired_time=payload.date_time,
            radius_km=payload.radius_km,
            time_window_minutes=payload.time_window_minutes,
        )
        matches = search_rides(request, repository)
    except InvalidSearchRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": exc.field, "message": exc.message},
        ) from exc
    except Exception as exc:
        logger.exception(f"Error searching rides: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to search rides: {str(exc)}",
        ) from exc

    return [
        RideSearchResponse(
            ride_id=match.ride_id,
            driver_name=match.driver_name,
            start_time=match.start_time,
            available_seats=match.available_seats,
            fare=match.fare,
            match_score=match.match_score,
        )
        for match in matches
    ]

"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry

from ..errors import InvalidSearchRequestError
from ..models.domain import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def validate_coordinate(point: GeoPoint | None, field: str) -> GeoPoint:
    """Return ``point`` unchanged or raise naming ``field`` as the offending input."""

    if point is None:
        raise InvalidSearchRequestError(field, "is required")
    if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
        raise InvalidSearchRequestError(field, "coordinates must be finite numbers")
    if not -90.0 <= point.lat <= 90.0:
        raise InvalidSearchRequestError(field, f"latitude {point.lat} outside [-90, 90]")
    if not -180.0 <= point.lng <= 180.0:
        raise InvalidSearchRequestError(field, f"longitude {point.lng} outside [-180, 180]")
    return point


def route_geometry(route: Sequence[tuple[float, float]]) -> BaseGeometry | None:
    """Build a planar geometry from ``(lng, lat)`` vertices; None for an empty route."""

    if not route:
        return None
    if len(route) == 1:
        return Point(route[0])
    return LineString(route)


def segment_intersects_route(start: GeoPoint, end: GeoPoint, route: Sequence[tuple[float, float]]) -> bool:
    """Return True if the straight segment start->end touches or crosses the route path.

    The test is planar in lon/lat, so segments or routes crossing the
    antimeridian (±180° longitude) are not handled.
    """

    path = route_geometry(route)
    if path is None:
        return False
    if (start.lat, start.lng) == (end.lat, end.lng):
        segment: BaseGeometry = Point(start.lng, start.lat)
    else:
        segment = LineString([(start.lng, start.lat), (end.lng, end.lat)])
    return segment.intersects(path)

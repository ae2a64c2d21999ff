from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from ridesearch.models.domain import GeoPoint, RideOffer, SearchRequest
from ridesearch.services.matching.filters import (
    PREDICATES,
    apply_search_defaults,
    build_candidate_filter,
    crosses_route,
    filter_candidates,
    has_available_seats,
    near_drop,
    near_pickup,
    within_time_window,
)

DESIRED = datetime(2025, 3, 14, 8, 0, tzinfo=timezone.utc)
PICKUP = GeoPoint(12.90, 77.60)
DROP = GeoPoint(12.95, 77.65)
# Crosses the pickup->drop diagonal between (77.63, 12.91) and (77.62, 12.94).
CROSSING_ROUTE = ((77.601, 12.901), (77.63, 12.91), (77.62, 12.94), (77.649, 12.949))


def _request(**overrides) -> SearchRequest:
    values = dict(pickup=PICKUP, drop=DROP, desired_time=DESIRED, radius_km=5.0, time_window_minutes=60)
    values.update(overrides)
    return SearchRequest(**values)


def _ride(ride_id: str = "R1", **overrides) -> RideOffer:
    values = dict(
        ride_id=ride_id,
        driver_id="D1",
        driver_name="Asha",
        seats_available=2,
        fare=120.0,
        start_point=GeoPoint(12.901, 77.601),
        end_point=GeoPoint(12.949, 77.649),
        route=CROSSING_ROUTE,
        departure_time=DESIRED + timedelta(minutes=10),
    )
    values.update(overrides)
    return RideOffer(**values)


def test_compatible_ride_passes_every_predicate():
    request = _request()
    ride = _ride()

    for _, predicate in PREDICATES:
        assert predicate(request, ride)
    assert filter_candidates(request, [ride]) == [ride]


@pytest.mark.parametrize(
    "overrides, failing",
    [
        ({"departure_time": DESIRED + timedelta(minutes=90)}, "time_window"),
        ({"seats_available": 0}, "seats_available"),
        ({"start_point": GeoPoint(12.80, 77.60)}, "pickup_proximity"),
        ({"end_point": GeoPoint(13.05, 77.65)}, "drop_proximity"),
        ({"route": ((77.70, 12.80), (77.75, 12.85))}, "route_intersection"),
    ],
)
def test_single_violation_excludes_ride(overrides, failing):
    request = _request()
    ride = _ride(**overrides)
    candidate_filter = build_candidate_filter(request)

    assert candidate_filter.failed_predicates(ride) == [failing]
    assert not candidate_filter.matches(ride)
    assert filter_candidates(request, [ride]) == []


def test_time_window_is_inclusive():
    request = _request()
    assert within_time_window(request, _ride(departure_time=DESIRED + timedelta(minutes=60)))
    assert within_time_window(request, _ride(departure_time=DESIRED - timedelta(minutes=60)))
    assert not within_time_window(request, _ride(departure_time=DESIRED + timedelta(minutes=60, seconds=1)))


def test_time_window_compares_across_timezones():
    ist = timezone(timedelta(hours=5, minutes=30))
    ride = _ride(departure_time=datetime(2025, 3, 14, 13, 50, tzinfo=ist))  # 08:20 UTC
    assert within_time_window(_request(), ride)


def test_naive_departure_is_treated_as_utc():
    ride = _ride(departure_time=datetime(2025, 3, 14, 8, 30))
    assert within_time_window(_request(), ride)


def test_seat_predicate():
    request = _request()
    assert has_available_seats(request, _ride(seats_available=1))
    assert not has_available_seats(request, _ride(seats_available=0))


def test_proximity_predicates_respect_radius():
    start = GeoPoint(12.93, 77.60)  # ~3.3 km north of pickup
    end = GeoPoint(12.95, 77.68)  # ~3.3 km east of drop
    ride = _ride(start_point=start, end_point=end)

    assert near_pickup(_request(radius_km=5.0), ride)
    assert near_drop(_request(radius_km=5.0), ride)
    assert not near_pickup(_request(radius_km=2.0), ride)
    assert not near_drop(_request(radius_km=2.0), ride)


def test_route_predicate_ignores_endpoint_distance():
    # Route far from the rider's endpoints still counts if it crosses the direct path.
    ride = _ride(route=((77.60, 12.95), (77.65, 12.90)))
    assert crosses_route(_request(), ride)


@pytest.mark.parametrize("radius, window", [(None, None), (0.0, 0), (-1.0, -15)])
def test_missing_or_non_positive_parameters_use_defaults(radius, window):
    resolved = apply_search_defaults(_request(radius_km=radius, time_window_minutes=window))

    assert resolved.radius_km == 5.0
    assert resolved.time_window_minutes == 60


def test_defaulted_request_filters_like_explicit_defaults():
    rides = [
        _ride("R1"),
        _ride("R2", departure_time=DESIRED + timedelta(minutes=60)),
        _ride("R3", departure_time=DESIRED + timedelta(minutes=61)),
        _ride("R4", start_point=GeoPoint(12.94, 77.60)),  # ~4.4 km
        _ride("R5", start_point=GeoPoint(12.95, 77.60)),  # ~5.6 km
    ]
    explicit = filter_candidates(_request(radius_km=5.0, time_window_minutes=60), rides)
    omitted = filter_candidates(_request(radius_km=None, time_window_minutes=None), rides)

    assert [ride.ride_id for ride in explicit] == ["R1", "R2", "R4"]
    assert omitted == explicit


def test_explicit_parameters_are_kept():
    request = _request(radius_km=2.5, time_window_minutes=15)
    assert apply_search_defaults(request) is request


def test_filter_preserves_input_order():
    rides = [_ride("R3"), _ride("R1", seats_available=0), _ride("R2")]
    assert [ride.ride_id for ride in filter_candidates(_request(), rides)] == ["R3", "R2"]


def test_query_description_lists_all_five_filters():
    query = build_candidate_filter(_request(radius_km=None)).to_query()
    filters = query["bool"]["filter"]

    assert len(filters) == 5
    assert filters[0]["range"]["dateTime"] == {
        "gte": "2025-03-14T07:00:00+00:00",
        "lte": "2025-03-14T09:00:00+00:00",
    }
    assert filters[1] == {"range": {"seatsAvailable": {"gt": 0}}}
    assert filters[2]["geo_distance"] == {"distance": "5.000km", "startPoint": {"lat": 12.90, "lon": 77.60}}
    assert filters[3]["geo_distance"] == {"distance": "5.000km", "endPoint": {"lat": 12.95, "lon": 77.65}}
    shape = filters[4]["geo_shape"]["route"]
    assert shape["relation"] == "intersects"
    assert shape["shape"]["coordinates"] == [[77.60, 12.90], [77.65, 12.95]]


def test_departure_window_matches_request():
    candidate_filter = build_candidate_filter(_request(time_window_minutes=30))
    assert candidate_filter.departure_window == (DESIRED - timedelta(minutes=30), DESIRED + timedelta(minutes=30))


def test_filter_does_not_mutate_rides():
    ride = _ride()
    snapshot = replace(ride)
    filter_candidates(_request(), [ride])
    assert ride == snapshot


def test_built_filter_applies_without_rebuilding():
    rides = [_ride("R1"), _ride("R2", seats_available=0), _ride("R3")]
    candidate_filter = build_candidate_filter(_request(radius_km=None, time_window_minutes=None))

    assert candidate_filter.request.radius_km == 5.0
    assert [ride.ride_id for ride in candidate_filter.apply(rides)] == ["R1", "R3"]
    assert candidate_filter.apply(rides) == filter_candidates(_request(), rides)

from datetime import date, time

import pytest

from trip_optimizer.models.domain import DateRange, Location, Trip
from trip_optimizer.services.routing.cost import CostEstimator
from trip_optimizer.services.routing.sequence_solver import sequence


def _trip(tid: str, passengers: int = 1) -> Trip:
    return Trip(
        trip_id=tid,
        pickup=Location("1 High Street", postcode="S1 2AB", latitude=53.38, longitude=-1.47),
        dropoff=Location("Royal Hallamshire Hospital", latitude=53.378, longitude=-1.49),
        pickup_time=time(9, 30),
        passenger_count=passengers,
    )


def test_trip_requires_a_passenger():
    with pytest.raises(ValueError):
        _trip("t1", passengers=0)


def test_trip_stops_are_pickup_then_dropoff():
    pickup, dropoff = _trip("t1").stops()
    assert (pickup.role, dropoff.role) == ("pickup", "dropoff")
    assert pickup.trip_id == dropoff.trip_id == "t1"
    assert dropoff.location.address == "Royal Hallamshire Hospital"


def test_provider_query_prefers_postcode():
    assert Location("1 High Street", postcode=" S1 2AB ").provider_query == "S1 2AB"
    assert Location("1 High Street", postcode="  ").provider_query == "1 High Street"
    assert Location("1 High Street").has_coordinates is False


def test_date_range_contains():
    week = DateRange(date(2024, 3, 4), date(2024, 3, 10))
    assert week.contains(date(2024, 3, 4))
    assert week.contains(date(2024, 3, 10))
    assert not week.contains(date(2024, 3, 11))


def test_stops_can_be_sequenced_directly():
    stops = [*_trip("t1").stops(), *_trip("t2").stops()]
    locations = [stop.location for stop in stops]
    matrix = CostEstimator(use_provider=False).estimate_matrix(locations, locations, zero_diagonal=True)
    result = sequence(stops, matrix)

    assert result.order[0] is stops[0]
    assert sorted(id(stop) for stop in result.order) == sorted(id(stop) for stop in stops)
    assert result.total_after <= result.total_before

from datetime import time

import pytest

from trip_optimizer.models.domain import Coordinates, Location, Trip
from trip_optimizer.services.routing.cost import (
    APPROXIMATE_POSITION_WARNING,
    NOT_CONFIGURED_WARNING,
    UNAVAILABLE_WARNING,
    CostEstimator,
)
from trip_optimizer.services.routing.geocoding import LocationResolver, approximate_coordinates


def _trip(tid: str, pickup: str, dropoff: str) -> Trip:
    return Trip(
        trip_id=tid,
        pickup=Location(address=pickup, postcode=f"{pickup} 1AA"),
        dropoff=Location(address=dropoff, postcode=f"{dropoff} 2BB"),
        pickup_time=time(8, 0),
    )


class DummyMatrixProvider:
    def __init__(self, distances, durations=None):
        self.distances = distances
        self.durations = durations or [[None if d is None else 60.0 for d in row] for row in distances]
        self.calls = []

    def distance_matrix(self, origins, destinations, departure_time=None):
        self.calls.append((list(origins), list(destinations)))
        return {"distances": self.distances, "durations": self.durations}


class FailingMatrixProvider:
    def distance_matrix(self, origins, destinations, departure_time=None):
        raise ConnectionError("provider down")


class DummyGeocoder:
    def __init__(self, known=None):
        self.known = known or {}

    def geocode(self, query):
        for address, coordinates in self.known.items():
            if query.startswith(address):
                return coordinates
        return None


def test_no_provider_uses_local_approximation():
    estimator = CostEstimator()
    trips = [_trip("1", "S1", "S2"), _trip("2", "S3", "S4")]
    matrix = estimator.estimate_trip_chain(trips)

    assert matrix.method == "local_approximation"
    assert matrix.warning == NOT_CONFIGURED_WARNING
    assert not matrix.reliable
    assert matrix.durations is None
    assert matrix.cost(0, 0) == 0.0 and matrix.cost(1, 1) == 0.0


def test_provider_matrix_converted_to_miles():
    provider = DummyMatrixProvider([[0, 1609.344], [3218.688, 0]])
    estimator = CostEstimator(provider=provider)
    trips = [_trip("1", "S1", "S2"), _trip("2", "S3", "S4")]
    matrix = estimator.estimate_trip_chain(trips)

    assert matrix.method == "external_provider"
    assert matrix.reliable
    assert matrix.warning is None
    assert matrix.cost(0, 1) == pytest.approx(1.0, rel=1e-4)
    assert matrix.cost(1, 0) == pytest.approx(2.0, rel=1e-4)
    # Dropoffs are origins, pickups are destinations, queried by postcode.
    origins, destinations = provider.calls[0]
    assert origins == ["S2 2BB", "S4 2BB"]
    assert destinations == ["S1 1AA", "S3 1AA"]


def test_partial_unknown_cells_flagged_and_unreliable():
    provider = DummyMatrixProvider(
        [
            [0, None, 1000],
            [1000, 0, 1000],
            [1000, 1000, 0],
        ]
    )
    estimator = CostEstimator(provider=provider)
    trips = [_trip(str(i), f"P{i}", f"D{i}") for i in range(3)]
    matrix = estimator.estimate_trip_chain(trips)

    assert matrix.method == "external_provider"
    assert matrix.unknown_count == 1
    assert matrix.unknown[0, 1]
    assert matrix.cost(0, 1) == 0.0
    assert not matrix.reliable
    assert "1 distance lookup" in matrix.warning


def test_mostly_unknown_matrix_falls_back():
    provider = DummyMatrixProvider(
        [
            [0, None, None],
            [None, 0, None],
            [1000, None, 0],
        ]
    )
    estimator = CostEstimator(provider=provider)
    trips = [_trip(str(i), f"P{i}", f"D{i}") for i in range(3)]
    matrix = estimator.estimate_trip_chain(trips)

    assert matrix.method == "local_approximation"
    assert matrix.warning.startswith(UNAVAILABLE_WARNING)


def test_provider_error_falls_back_with_warning():
    estimator = CostEstimator(provider=FailingMatrixProvider())
    matrix = estimator.estimate_matrix([Location("A")], [Location("B")])
    assert matrix.method == "local_approximation"
    assert matrix.warning == UNAVAILABLE_WARNING


def test_approximate_positions_reported_when_geocoder_misses():
    resolver = LocationResolver(DummyGeocoder({"Known": Coordinates(53.0, -1.0)}))
    estimator = CostEstimator(resolver=resolver, use_provider=False)
    matrix = estimator.estimate_matrix([Location("Known street")], [Location("Nowhere lane")])
    assert APPROXIMATE_POSITION_WARNING in matrix.warning


def test_estimate_pair():
    estimator = CostEstimator(provider=DummyMatrixProvider([[1609.344]], [[120.0]]))
    estimate = estimator.estimate_pair(Location("A"), Location("B"))
    assert estimate.method == "external_provider"
    assert estimate.distance_miles == pytest.approx(1.0, rel=1e-4)
    assert estimate.duration_seconds == 120.0
    assert estimate.known


def test_zero_diagonal_requires_square():
    with pytest.raises(ValueError):
        CostEstimator().estimate_matrix([Location("A")], [Location("B"), Location("C")], zero_diagonal=True)


def test_approximate_coordinates_deterministic():
    first = approximate_coordinates("AB")
    # ord("A") + ord("B") = 131 -> 31 / 1000 offset from the anchor.
    assert first.latitude == pytest.approx(53.38 + 0.031)
    assert first.longitude == pytest.approx(-1.47 + 0.031)
    assert approximate_coordinates("AB") == first


def test_resolver_falls_back_on_geocoder_error():
    class BrokenGeocoder:
        def geocode(self, query):
            raise ConnectionError("timeout")

    resolved = LocationResolver(BrokenGeocoder()).resolve("10 Downing Street", "SW1A 2AA")
    assert resolved.method == "local_approximation"
    assert resolved.coordinates == approximate_coordinates("10 Downing Street")


def test_resolver_keeps_existing_coordinates_and_order():
    resolver = LocationResolver(DummyGeocoder({"Alpha": Coordinates(1.0, 2.0), "Beta": Coordinates(3.0, 4.0)}))
    locations = [
        Location("Beta road"),
        Location("Given", latitude=9.0, longitude=8.0),
        Location("Alpha road"),
    ]
    resolved = resolver.resolve_many(locations)

    assert [item.coordinates for item in resolved] == [
        Coordinates(3.0, 4.0),
        Coordinates(9.0, 8.0),
        Coordinates(1.0, 2.0),
    ]
    assert all(item.method == "external_provider" for item in resolved)
    assert resolved[1].location is locations[1]

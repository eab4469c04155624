from datetime import date, time

import pytest

from trip_optimizer.models.domain import Location, Trip
from trip_optimizer.services.carpool.compatibility import (
    destinations_similar,
    estimate_postcode_proximity,
    score_compatibility,
    time_difference_minutes,
)
from trip_optimizer.services.carpool.detour import DetourCalculator, is_detour_feasible
from trip_optimizer.services.carpool.recommendations import (
    PROXIMITY_ONLY_WARNING,
    ROUTING_UNAVAILABLE_WARNING,
    recommend_passengers,
)
from trip_optimizer.services.routing.models import WaypointRoute


def _trip(
    tid: str,
    pickup_postcode: str | None = "S1 2AB",
    destination: str = "Manchester Airport",
    pickup_time: time = time(8, 0),
    pickup_address: str | None = None,
) -> Trip:
    return Trip(
        trip_id=tid,
        pickup=Location(address=pickup_address or f"{tid} Street", postcode=pickup_postcode),
        dropoff=Location(address=destination, postcode="M90 1QX"),
        pickup_time=pickup_time,
        trip_date=date(2024, 3, 4),
    )


def _route(detour_seconds: float, detour_meters: float = 1000.0) -> WaypointRoute:
    return WaypointRoute(
        total_distance=10000 + detour_meters,
        total_duration=1200 + detour_seconds,
        detour_distance=detour_meters,
        detour_duration=detour_seconds,
        feasible=is_detour_feasible(detour_seconds, detour_meters),
    )


class DummyMatrix:
    def distance_matrix(self, origins, destinations, departure_time=None):
        return {"distances": [[10000.0]], "durations": [[1200.0]]}


class DummyDirections:
    def __init__(self, legs_by_waypoint, failing=()):
        self.legs_by_waypoint = legs_by_waypoint
        self.failing = set(failing)

    def directions(self, origin, destination, waypoints):
        waypoint = waypoints[0]
        if waypoint in self.failing:
            raise ConnectionError("directions down")
        distance, duration = self.legs_by_waypoint[waypoint]
        return {
            "routes": [
                {
                    "legs": [
                        {"distance": {"value": distance / 2}, "duration": {"value": duration / 2}},
                        {"distance": {"value": distance / 2}, "duration": {"value": duration / 2}},
                    ]
                }
            ]
        }


@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        ("S1 2AB", "s12ab", 100),
        ("S1 2AB", "S1 4XY", 75),
        ("S1 2AB", "S10 1AA", 40),
        ("S1 2AB", "M1 1AA", 10),
        ("S1 2AB", None, 0),
        ("", "S1 2AB", 0),
    ],
)
def test_postcode_proximity(first, second, expected):
    assert estimate_postcode_proximity(first, second) == expected


def test_destination_similarity_normalises_text():
    assert destinations_similar("Manchester Airport", "manchester-airport terminal 2")
    assert not destinations_similar("Leeds Station", "Sheffield Station")


def test_time_difference_ignores_order():
    assert time_difference_minutes(time(8, 0), time(9, 15)) == 75
    assert time_difference_minutes(time(9, 15), time(8, 0)) == 75


def test_same_destination_contributes_thirty_points():
    driver = _trip("1")
    same = score_compatibility(driver, _trip("2", destination="manchester airport"), proximity=0)
    different = score_compatibility(driver, _trip("3", destination="Leeds"), proximity=0)
    assert same.score - different.score == 25
    assert same.score == 30 + 0 + 25
    assert same.shared_destination and "✓ Same destination" in same.reasoning


def test_proximity_points_round_half_up():
    driver = _trip("1", destination="A")
    result = score_compatibility(driver, _trip("2", pickup_postcode="M1 1AA", destination="B", pickup_time=time(12, 0)))
    # 5 (different destination) + round(10 * 0.25) = 3 + 0 (time far apart)
    assert result.score == 8
    assert result.reasoning == ["✗ Different destinations", "✗ Different areas", "✗ Different pickup times"]


@pytest.mark.parametrize(
    ("minutes", "points"),
    [(0, 25), (15, 25), (16, 20), (30, 20), (45, 10), (60, 10), (61, 0)],
)
def test_time_points(minutes, points):
    driver = _trip("1", pickup_postcode=None)
    candidate = _trip("2", pickup_postcode=None, destination="Elsewhere", pickup_time=time(8 + minutes // 60, minutes % 60))
    assert score_compatibility(driver, candidate).score == 5 + points


@pytest.mark.parametrize(
    ("detour_seconds", "points"),
    [(120, 20), (420, 15), (780, 10), (900, 0)],
)
def test_detour_points(detour_seconds, points):
    driver = _trip("1", pickup_postcode=None)
    candidate = _trip("2", pickup_postcode=None, destination="Elsewhere", pickup_time=time(20, 0))
    result = score_compatibility(driver, candidate, route=_route(detour_seconds))
    assert result.score == 5 + points
    assert result.detour_minutes == round(detour_seconds / 60)


def test_score_bounds():
    driver = _trip("1")
    best = score_compatibility(driver, _trip("2"), route=_route(60))
    worst = score_compatibility(
        _trip("3", pickup_postcode=None, destination="A"),
        _trip("4", pickup_postcode=None, destination="B", pickup_time=time(18, 0)),
        route=_route(2000),
    )
    assert best.score == 100
    assert worst.score == 5
    assert 0 <= worst.score <= best.score <= 100


def test_score_reports_estimation_method():
    proximity_only = score_compatibility(_trip("1"), _trip("2"))
    assert proximity_only.method == "local_approximation"
    assert proximity_only.reliable is False
    assert proximity_only.warning == PROXIMITY_ONLY_WARNING
    assert proximity_only.detour_minutes is None

    routed = score_compatibility(_trip("1"), _trip("2"), route=_route(240))
    assert routed.method == "external_provider"
    assert routed.reliable is True
    assert routed.warning is None
    assert routed.detour_minutes == 4


def test_detour_feasibility_boundaries():
    assert is_detour_feasible(899, 8000)
    assert not is_detour_feasible(900, 8000)
    assert not is_detour_feasible(899, 8046)
    assert is_detour_feasible(899, 8045)


def test_detour_calculator_unavailable_without_providers():
    calculator = DetourCalculator()
    assert not calculator.available
    assert calculator.route_with_waypoint(Location("A"), Location("B"), Location("C")) is None


def test_detour_calculator_compares_with_direct_route():
    calculator = DetourCalculator(DummyMatrix(), DummyDirections({"Pax": (14000.0, 1600.0)}))
    route = calculator.route_with_waypoint(Location("Driver"), Location("Pax"), Location("Airport"))
    assert route.detour_distance == pytest.approx(4000.0)
    assert route.detour_duration == pytest.approx(400.0)
    assert route.feasible


def test_recommendations_filter_sort_and_exclude_driver():
    driver = _trip("1")
    candidates = [
        driver,
        _trip("2", pickup_postcode="M1 1AA", destination="Leeds", pickup_time=time(14, 0)),
        _trip("3", pickup_postcode="S1 4XY", pickup_time=time(8, 20)),
        _trip("4", pickup_postcode="S1 2AB"),
        _trip("5", pickup_postcode="S1 4XY", pickup_time=time(8, 10)),
    ]
    result = recommend_passengers(driver, candidates)

    assert result.total_candidates == 4
    assert [item.trip.trip_id for item in result.recommendations] == ["4", "5", "3"]
    assert all(item.score >= 20 for item in result.recommendations)
    assert result.method == "local_approximation"
    assert not result.used_precise_routing
    assert result.warning == PROXIMITY_ONLY_WARNING
    assert result.metadata["pickup_time"] == "08:00"


def test_recommendations_respect_limit_and_min_score():
    driver = _trip("1")
    candidates = [_trip(str(i)) for i in range(2, 8)]
    result = recommend_passengers(driver, candidates, limit=3, min_score=90)
    assert result.recommendations == []

    limited = recommend_passengers(driver, candidates, limit=3)
    assert [item.trip.trip_id for item in limited.recommendations] == ["2", "3", "4"]


def test_precise_routing_unavailable_degrades_to_proximity():
    result = recommend_passengers(_trip("1"), [_trip("2")], use_precise_routing=True)
    assert not result.used_precise_routing
    assert result.warning == ROUTING_UNAVAILABLE_WARNING
    assert result.recommendations[0].detour_minutes is None


def test_precise_routing_isolates_failing_candidates():
    directions = DummyDirections({"Near": (11000.0, 1320.0), "Broken": (0, 0)}, failing={"Broken"})
    calculator = DetourCalculator(DummyMatrix(), directions)
    driver = _trip("1")
    candidates = [_trip("2", pickup_address="Near"), _trip("3", pickup_address="Broken")]
    result = recommend_passengers(driver, candidates, use_precise_routing=True, detour_calculator=calculator)

    assert result.used_precise_routing
    assert result.method == "external_provider"
    assert not result.reliable
    assert "1 of 2" in result.warning
    scores = {item.trip.trip_id: item for item in result.recommendations}
    assert scores["2"].detour_minutes == 2
    assert scores["2"].score == 100
    assert scores["3"].detour_minutes is None
    assert scores["3"].score == 80

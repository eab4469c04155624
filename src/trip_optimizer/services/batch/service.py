"""Batch route optimisation across drivers and days."""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Literal, Optional, Sequence

from ...config import settings
from ...models.domain import DateRange, Driver, Trip
from ..capacity.service import CapacityGroup, group_by_capacity
from ..routing.cost import CostEstimator
from ..routing.models import EstimationMethod
from ..routing.sequence_solver import sequence
from ..routing.service import departure_time_for, estimate_minutes_saved, round_half_up

EfficiencyStatus = Literal["optimal", "good", "needs-optimization", "error"]

NEEDS_OPTIMIZATION_BELOW = 70
OPTIMAL_FROM = 90

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DriverDayScore:
    driver_id: str
    day: date
    score: int
    status: EfficiencyStatus
    trip_count: int
    current_distance: float
    optimal_distance: float
    savings_potential: float
    distance_saved: float = 0.0
    time_saved_estimate: int = 0
    method: Optional[EstimationMethod] = None
    reliable: bool = False
    warning: Optional[str] = None
    original_order: List[Trip] = field(default_factory=list)
    optimized_order: List[Trip] = field(default_factory=list)
    capacity_groups: List[CapacityGroup] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(slots=True)
class OptimizedAssignment:
    trip_id: str
    driver_id: str
    day: date
    suggested_time: time
    sequence_order: int


@dataclass(slots=True)
class AggregateStats:
    driver_days: int
    errors: int
    total_distance_saved: float
    total_time_saved: int
    average_efficiency_score: int


@dataclass(slots=True)
class BatchResult:
    per_driver_per_day: List[DriverDayScore]
    aggregate: AggregateStats
    optimized_assignments: List[OptimizedAssignment]


def efficiency_score(optimal_distance: float, current_distance: float) -> int:
    if current_distance <= 0:
        return 100
    return round_half_up(optimal_distance / current_distance * 100)


def efficiency_status(score: int) -> EfficiencyStatus:
    if score < NEEDS_OPTIMIZATION_BELOW:
        return "needs-optimization"
    if score < OPTIMAL_FROM:
        return "good"
    return "optimal"


def _group_driver_days(
    trips: Sequence[Trip],
    drivers: Sequence[Driver],
    date_range: DateRange,
) -> OrderedDict[tuple[date, str], list[Trip]]:
    known_drivers = {driver.driver_id for driver in drivers}
    grouped: OrderedDict[tuple[date, str], list[Trip]] = OrderedDict()
    for trip in trips:
        if trip.driver_id is None or trip.trip_date is None:
            continue
        if not date_range.contains(trip.trip_date):
            continue
        if known_drivers and trip.driver_id not in known_drivers:
            continue
        grouped.setdefault((trip.trip_date, trip.driver_id), []).append(trip)
    return grouped


def _score_driver_day(
    driver_id: str,
    day: date,
    trips: Sequence[Trip],
    estimator: CostEstimator,
) -> DriverDayScore:
    try:
        matrix = estimator.estimate_trip_chain(trips, departure_time_for(trips, day))
        result = sequence(trips, matrix)
    except Exception as e:
        logger.exception(f"Error calculating score for driver {driver_id} on {day}: {e}")
        return DriverDayScore(
            driver_id=driver_id,
            day=day,
            score=0,
            status="error",
            trip_count=len(trips),
            current_distance=0.0,
            optimal_distance=0.0,
            savings_potential=0.0,
            original_order=list(trips),
            error="Failed to calculate score",
        )

    score = efficiency_score(result.total_after, result.total_before)
    return DriverDayScore(
        driver_id=driver_id,
        day=day,
        score=score,
        status=efficiency_status(score),
        trip_count=len(trips),
        current_distance=round(result.total_before, 2),
        optimal_distance=round(result.total_after, 2),
        savings_potential=round(max(0.0, result.distance_saved), 2),
        distance_saved=round(result.distance_saved, 2),
        time_saved_estimate=estimate_minutes_saved(result.distance_saved),
        method=matrix.method,
        reliable=matrix.reliable,
        warning=matrix.warning,
        original_order=list(trips),
        optimized_order=result.order,
    )


def batch_optimize(
    trips: Sequence[Trip],
    drivers: Sequence[Driver],
    date_range: DateRange,
    *,
    estimator: CostEstimator | None = None,
    include_capacity: bool = False,
) -> BatchResult:
    """Score every driver/day with at least two trips and total the potential savings.

    Trips keep their input (booking) order as the current sequence. A driver/day whose
    estimation fails is reported with status ``error`` and zeroed metrics; the rest of
    the batch is unaffected.
    """
    estimator = estimator or CostEstimator()
    grouped = _group_driver_days(trips, drivers, date_range)
    work = [(key, day_trips) for key, day_trips in grouped.items() if len(day_trips) >= 2]
    logger.info(
        f"Batch optimizing {len(work)} driver/day entries between {date_range.start} and {date_range.end}"
    )

    def run(item: tuple[tuple[date, str], list[Trip]]) -> DriverDayScore:
        (day, driver_id), day_trips = item
        return _score_driver_day(driver_id, day, day_trips, estimator)

    if len(work) > 1:
        with ThreadPoolExecutor(max_workers=settings.max_parallel_requests) as executor:
            entries = list(executor.map(run, work))
    else:
        entries = [run(item) for item in work]

    if include_capacity:
        capacities = {driver.driver_id: driver.vehicle_capacity for driver in drivers}
        for entry, (_, day_trips) in zip(entries, work):
            capacity = capacities.get(entry.driver_id, settings.default_vehicle_capacity)
            entry.capacity_groups = group_by_capacity(day_trips, capacity)

    entries.sort(key=lambda entry: (entry.day, entry.driver_id))

    assignments: list[OptimizedAssignment] = []
    succeeded = [entry for entry in entries if entry.status != "error"]
    for entry in succeeded:
        for position, trip in enumerate(entry.optimized_order, start=1):
            assignments.append(
                OptimizedAssignment(
                    trip_id=trip.trip_id,
                    driver_id=entry.driver_id,
                    day=entry.day,
                    suggested_time=trip.pickup_time,
                    sequence_order=position,
                )
            )

    total_saved = sum(entry.savings_potential for entry in succeeded)
    average_score = (
        round_half_up(sum(entry.score for entry in succeeded) / len(succeeded)) if succeeded else 100
    )
    aggregate = AggregateStats(
        driver_days=len(entries),
        errors=len(entries) - len(succeeded),
        total_distance_saved=round(total_saved, 2),
        total_time_saved=estimate_minutes_saved(total_saved),
        average_efficiency_score=average_score,
    )
    return BatchResult(per_driver_per_day=entries, aggregate=aggregate, optimized_assignments=assignments)

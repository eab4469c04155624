"""Route optimisation orchestration."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Sequence

from ...config import settings
from ...models.domain import Trip
from .cost import CostEstimator
from .models import CostMatrix, OptimizationResult, SequenceResult
from .sequence_solver import sequence

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def estimate_minutes_saved(distance_saved: float) -> int:
    return round_half_up(distance_saved * settings.minutes_per_mile)


def departure_time_for(trips: Sequence[Trip], trip_date: date | None = None) -> datetime | None:
    """Departure for traffic-aware lookups: the day at the first trip's pickup time."""
    day = trip_date or trips[0].trip_date
    if day is None:
        return None
    return datetime.combine(day, trips[0].pickup_time)


def build_optimization_result(trips: Sequence[Trip], matrix: CostMatrix, result: SequenceResult[Trip]) -> OptimizationResult:
    distance_saved = result.distance_saved
    return OptimizationResult(
        original_order=list(trips),
        optimized_order=result.order,
        total_distance_before=result.total_before,
        total_distance_after=result.total_after,
        distance_saved=distance_saved,
        time_saved_estimate=estimate_minutes_saved(distance_saved),
        method=matrix.method,
        reliable=matrix.reliable,
        warning=matrix.warning,
    )


def optimize_route(
    trips: Sequence[Trip],
    driver_id: str | None = None,
    trip_date: date | None = None,
    *,
    estimator: CostEstimator | None = None,
) -> OptimizationResult:
    """Sequence one driver's trips so each dropoff leads to the nearest next pickup."""
    if len(trips) < 2:
        raise ValueError("Invalid request. Need at least 2 trips to optimize a route.")

    estimator = estimator or CostEstimator()
    matrix = estimator.estimate_trip_chain(trips, departure_time_for(trips, trip_date))
    result = sequence(trips, matrix)
    logger.info(
        f"Optimized {len(trips)} trips for driver {driver_id or '-'} on {trip_date or '-'} using {matrix.method}: "
        f"{result.total_before:.2f} -> {result.total_after:.2f} miles"
    )
    return build_optimization_result(trips, matrix, result)

"""Routing request/response schemas."""

from __future__ import annotations

from datetime import date as Date
from datetime import time as Time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..services.batch.service import BatchResult, DriverDayScore
from ..services.capacity.service import CapacityGroup, CapacityStatistics
from ..services.routing.models import OptimizationResult
from ..services.routing.service import round_half_up
from .trips import DriverModel, TripModel

EstimationMethodName = Literal["external_provider", "local_approximation"]


class RouteOptimizationRequest(BaseModel):
    driver_id: Optional[str] = None
    date: Optional[Date] = None
    trips: List[TripModel] = Field(..., description="Trips in their current (booking) order.")


class SavingsModel(BaseModel):
    distance: float
    time: int = Field(..., description="Estimated minutes saved.")


class RouteOptimizationResponse(BaseModel):
    driver_id: Optional[str] = None
    date: Optional[Date] = None
    original_order: List[TripModel]
    optimized_order: List[TripModel]
    total_distance_before: float
    total_distance_after: float
    savings: SavingsModel
    method: EstimationMethodName
    reliable: bool
    warning: Optional[str] = None

    @classmethod
    def from_result(
        cls,
        result: OptimizationResult,
        driver_id: Optional[str] = None,
        day: Optional[Date] = None,
    ) -> "RouteOptimizationResponse":
        return cls(
            driver_id=driver_id,
            date=day,
            original_order=[TripModel.from_domain(trip) for trip in result.original_order],
            optimized_order=[TripModel.from_domain(trip) for trip in result.optimized_order],
            total_distance_before=round(result.total_distance_before, 2),
            total_distance_after=round(result.total_distance_after, 2),
            savings=SavingsModel(distance=round(result.distance_saved, 2), time=result.time_saved_estimate),
            method=result.method,
            reliable=result.reliable,
            warning=result.warning,
        )


class BatchOptimizationRequest(BaseModel):
    start_date: Date
    end_date: Date
    trips: List[TripModel]
    drivers: List[DriverModel] = Field(default_factory=list)
    include_capacity: bool = False


class CapacityGroupModel(BaseModel):
    group_id: int
    vehicle_capacity: int
    total_passengers: int
    capacity_used_percent: int
    remaining_capacity: int
    over_capacity: bool
    trips: List[TripModel]

    @classmethod
    def from_group(cls, group: CapacityGroup) -> "CapacityGroupModel":
        return cls(
            group_id=group.group_id,
            vehicle_capacity=group.vehicle_capacity,
            total_passengers=group.total_passengers,
            capacity_used_percent=round_half_up(group.capacity_used_percent),
            remaining_capacity=group.remaining_capacity,
            over_capacity=group.over_capacity,
            trips=[TripModel.from_domain(trip) for trip in group.trips],
        )


class DriverDayScoreModel(BaseModel):
    driver_id: str
    date: Date
    score: int
    status: Literal["optimal", "good", "needs-optimization", "error"]
    trip_count: int
    current_distance: float
    optimal_distance: float
    savings_potential: float
    distance_saved: float = 0.0
    time_saved_estimate: int = Field(0, description="Estimated minutes saved.")
    method: Optional[EstimationMethodName] = None
    reliable: bool = False
    warning: Optional[str] = None
    error: Optional[str] = None
    original_order: List[TripModel] = Field(default_factory=list)
    optimized_order: List[TripModel] = Field(default_factory=list)
    capacity_groups: List[CapacityGroupModel] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: DriverDayScore) -> "DriverDayScoreModel":
        return cls(
            driver_id=entry.driver_id,
            date=entry.day,
            score=entry.score,
            status=entry.status,
            trip_count=entry.trip_count,
            current_distance=entry.current_distance,
            optimal_distance=entry.optimal_distance,
            savings_potential=entry.savings_potential,
            distance_saved=entry.distance_saved,
            time_saved_estimate=entry.time_saved_estimate,
            method=entry.method,
            reliable=entry.reliable,
            warning=entry.warning,
            error=entry.error,
            original_order=[TripModel.from_domain(trip) for trip in entry.original_order],
            optimized_order=[TripModel.from_domain(trip) for trip in entry.optimized_order],
            capacity_groups=[CapacityGroupModel.from_group(group) for group in entry.capacity_groups],
        )


class OptimizationScoresResponse(BaseModel):
    scores: List[DriverDayScoreModel]


class OptimizedAssignmentModel(BaseModel):
    trip_id: str
    driver_id: str
    date: Date
    suggested_time: Time
    sequence_order: int


class AggregateModel(BaseModel):
    driver_days: int
    errors: int
    total_distance_saved: float
    total_time_saved: int
    average_efficiency_score: int


class BatchOptimizationResponse(BaseModel):
    scores: List[DriverDayScoreModel]
    optimized_assignments: List[OptimizedAssignmentModel]
    savings: AggregateModel
    metadata: dict

    @classmethod
    def from_result(cls, result: BatchResult, metadata: dict) -> "BatchOptimizationResponse":
        aggregate = result.aggregate
        return cls(
            scores=[DriverDayScoreModel.from_entry(entry) for entry in result.per_driver_per_day],
            optimized_assignments=[
                OptimizedAssignmentModel(
                    trip_id=assignment.trip_id,
                    driver_id=assignment.driver_id,
                    date=assignment.day,
                    suggested_time=assignment.suggested_time,
                    sequence_order=assignment.sequence_order,
                )
                for assignment in result.optimized_assignments
            ],
            savings=AggregateModel(
                driver_days=aggregate.driver_days,
                errors=aggregate.errors,
                total_distance_saved=aggregate.total_distance_saved,
                total_time_saved=aggregate.total_time_saved,
                average_efficiency_score=aggregate.average_efficiency_score,
            ),
            metadata=metadata,
        )


class CapacityOptimizationRequest(BaseModel):
    date: Optional[Date] = None
    vehicle_capacity: int = Field(default=8, ge=1)
    share_window_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="When set, trips only share a vehicle with nearby pickups inside this window.",
    )
    trips: List[TripModel]


class CapacityStatisticsModel(BaseModel):
    total_trips: int
    total_passengers: int
    vehicles_needed: int
    vehicles_saved: int
    average_capacity_used: int
    efficiency: int

    @classmethod
    def from_statistics(cls, statistics: CapacityStatistics) -> "CapacityStatisticsModel":
        return cls(
            total_trips=statistics.total_trips,
            total_passengers=statistics.total_passengers,
            vehicles_needed=statistics.vehicles_needed,
            vehicles_saved=statistics.vehicles_saved,
            average_capacity_used=statistics.average_capacity_used,
            efficiency=statistics.efficiency,
        )


class CapacityOptimizationResponse(BaseModel):
    date: Optional[Date] = None
    groups: List[CapacityGroupModel]
    statistics: CapacityStatisticsModel

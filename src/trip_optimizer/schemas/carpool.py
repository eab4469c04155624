"""Carpool request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.carpool.detour import DETOUR_UNAVAILABLE_WARNING
from ..services.carpool.models import CompatibilityCandidate, CompatibilityScore, RecommendationResult
from ..services.routing.models import WaypointRoute
from .routing import EstimationMethodName
from .trips import LocationModel, TripModel


class RecommendationRequest(BaseModel):
    driver_trip: TripModel
    candidates: List[TripModel]
    use_precise_routing: bool = False
    limit: Optional[int] = Field(default=None, ge=1)
    min_score: Optional[int] = Field(default=None, ge=0, le=100)


class RecommendationModel(BaseModel):
    trip: TripModel
    score: int
    reasoning: List[str]
    shared_destination: bool
    detour_minutes: Optional[int] = None

    @classmethod
    def from_candidate(cls, candidate: CompatibilityCandidate) -> "RecommendationModel":
        return cls(
            trip=TripModel.from_domain(candidate.trip),
            score=candidate.score,
            reasoning=list(candidate.reasoning),
            shared_destination=candidate.shared_destination,
            detour_minutes=candidate.detour_minutes,
        )


class RecommendationResponse(BaseModel):
    driver_trip_id: str
    recommendations: List[RecommendationModel]
    total_candidates: int
    used_precise_routing: bool
    method: EstimationMethodName
    reliable: bool
    warning: Optional[str] = None
    metadata: dict

    @classmethod
    def from_result(cls, driver_trip_id: str, result: RecommendationResult) -> "RecommendationResponse":
        return cls(
            driver_trip_id=driver_trip_id,
            recommendations=[RecommendationModel.from_candidate(item) for item in result.recommendations],
            total_candidates=result.total_candidates,
            used_precise_routing=result.used_precise_routing,
            method=result.method,
            reliable=result.reliable,
            warning=result.warning,
            metadata=result.metadata,
        )


class CompatibilityRequest(BaseModel):
    driver_trip: TripModel
    candidate_trip: TripModel
    proximity: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Pickup proximity (0-100). Defaults to the postcode estimate.",
    )


class CompatibilityResponse(BaseModel):
    score: int
    reasoning: List[str]
    shared_destination: bool
    detour_minutes: Optional[int] = None
    method: EstimationMethodName
    reliable: bool
    warning: Optional[str] = None

    @classmethod
    def from_score(cls, result: CompatibilityScore) -> "CompatibilityResponse":
        return cls(
            score=result.score,
            reasoning=result.reasoning,
            shared_destination=result.shared_destination,
            detour_minutes=result.detour_minutes,
            method=result.method,
            reliable=result.reliable,
            warning=result.warning,
        )


class DetourRequest(BaseModel):
    driver_location: LocationModel
    passenger_location: LocationModel
    destination: LocationModel


class DetourResponse(BaseModel):
    available: bool
    total_distance: Optional[float] = Field(default=None, description="Meters via the passenger.")
    total_duration: Optional[float] = Field(default=None, description="Seconds via the passenger.")
    detour_distance: Optional[float] = None
    detour_duration: Optional[float] = None
    feasible: Optional[bool] = None
    method: EstimationMethodName = "local_approximation"
    reliable: bool = False
    warning: Optional[str] = None

    @classmethod
    def from_route(cls, route: WaypointRoute | None) -> "DetourResponse":
        if route is None:
            return cls(available=False, warning=DETOUR_UNAVAILABLE_WARNING)
        return cls(
            available=True,
            total_distance=route.total_distance,
            total_duration=route.total_duration,
            detour_distance=route.detour_distance,
            detour_duration=route.detour_duration,
            feasible=route.feasible,
            method="external_provider",
            reliable=True,
        )

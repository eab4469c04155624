"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Literal, Optional, TypeVar

import numpy as np

from ...models.domain import Coordinates, Location, Trip

EstimationMethod = Literal["external_provider", "local_approximation"]

T = TypeVar("T")


@dataclass(slots=True)
class ResolvedLocation:
    location: Location
    coordinates: Coordinates
    method: EstimationMethod

    @property
    def approximated(self) -> bool:
        return self.method == "local_approximation"


@dataclass(slots=True)
class CostEstimate:
    distance_miles: float
    duration_seconds: Optional[float]
    method: EstimationMethod
    warning: Optional[str] = None
    known: bool = True


@dataclass(slots=True)
class CostMatrix:
    """Origin x destination travel costs.

    ``distances`` is in miles. ``durations`` is in seconds and is only populated by the
    external provider. Cells the provider could not price hold ``0.0`` and are flagged
    in ``unknown``.
    """

    distances: np.ndarray
    unknown: np.ndarray
    method: EstimationMethod
    durations: Optional[np.ndarray] = None
    warning: Optional[str] = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.distances.shape

    @property
    def unknown_count(self) -> int:
        return int(self.unknown.sum())

    @property
    def reliable(self) -> bool:
        return self.method == "external_provider" and self.unknown_count == 0

    def cost(self, origin: int, destination: int) -> float:
        return float(self.distances[origin, destination])


@dataclass(slots=True)
class SequenceResult(Generic[T]):
    order: List[T]
    indices: List[int]
    total_before: float
    total_after: float

    @property
    def distance_saved(self) -> float:
        return self.total_before - self.total_after


@dataclass(slots=True)
class OptimizationResult:
    original_order: List[Trip]
    optimized_order: List[Trip]
    total_distance_before: float
    total_distance_after: float
    distance_saved: float
    time_saved_estimate: int
    method: EstimationMethod
    reliable: bool
    warning: Optional[str] = None


@dataclass(slots=True)
class WaypointRoute:
    """Driver -> passenger -> destination route compared with the direct route.

    Distances are in meters and durations in seconds.
    """

    total_distance: float
    total_duration: float
    detour_distance: float
    detour_duration: float
    feasible: bool

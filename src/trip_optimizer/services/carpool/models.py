"""Carpool matching models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Trip
from ..routing.models import EstimationMethod


@dataclass(slots=True)
class CompatibilityScore:
    score: int
    reasoning: List[str]
    shared_destination: bool
    detour_minutes: Optional[int] = None
    method: EstimationMethod = "local_approximation"
    reliable: bool = False
    warning: Optional[str] = None


@dataclass(slots=True)
class CompatibilityCandidate:
    trip: Trip
    score: int
    reasoning: List[str]
    shared_destination: bool
    detour_minutes: Optional[int] = None


@dataclass(slots=True)
class RecommendationResult:
    recommendations: List[CompatibilityCandidate]
    total_candidates: int
    used_precise_routing: bool
    method: EstimationMethod
    reliable: bool
    warning: Optional[str] = None
    metadata: dict = field(default_factory=dict)

"""Carpool compatibility scoring and passenger recommendations."""

from .compatibility import (
    destinations_similar,
    estimate_postcode_proximity,
    score_compatibility,
    time_difference_minutes,
)
from .detour import DetourCalculator, is_detour_feasible
from .recommendations import recommend_passengers

__all__ = [
    "destinations_similar",
    "estimate_postcode_proximity",
    "score_compatibility",
    "time_difference_minutes",
    "DetourCalculator",
    "is_detour_feasible",
    "recommend_passengers",
]

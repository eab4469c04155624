"""Passenger recommendations for a driver's trip."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from ...config import settings
from ...models.domain import Trip
from ..routing.models import WaypointRoute
from .compatibility import PROXIMITY_ONLY_WARNING, score_compatibility
from .detour import DetourCalculator
from .models import CompatibilityCandidate, RecommendationResult

ROUTING_UNAVAILABLE_WARNING = "Precise routing unavailable (Google Maps not configured); scores use postcode proximity only."

logger = logging.getLogger(__name__)


def _detours_for(
    driver_trip: Trip,
    candidates: Sequence[Trip],
    calculator: DetourCalculator,
) -> list[WaypointRoute | None]:
    def detour(candidate: Trip) -> WaypointRoute | None:
        return calculator.route_with_waypoint(driver_trip.pickup, candidate.pickup, driver_trip.dropoff)

    with ThreadPoolExecutor(max_workers=settings.max_parallel_requests) as executor:
        return list(executor.map(detour, candidates))


def recommend_passengers(
    driver_trip: Trip,
    candidates: Sequence[Trip],
    *,
    use_precise_routing: bool = False,
    detour_calculator: DetourCalculator | None = None,
    limit: int | None = None,
    min_score: int | None = None,
) -> RecommendationResult:
    """Rank candidate passengers for ``driver_trip`` by compatibility score.

    Candidates scoring below ``min_score`` are dropped; the rest are sorted by score
    (highest first, input order for ties) and truncated to ``limit``.
    """
    limit = settings.max_recommendations if limit is None else limit
    min_score = settings.min_recommendation_score if min_score is None else min_score
    pool = [candidate for candidate in candidates if candidate.trip_id != driver_trip.trip_id]

    routes: list[WaypointRoute | None] = [None] * len(pool)
    used_precise_routing = False
    warning = None
    if use_precise_routing:
        calculator = detour_calculator or DetourCalculator()
        if calculator.available and pool:
            routes = _detours_for(driver_trip, pool, calculator)
            used_precise_routing = True
            missing = sum(1 for route in routes if route is None)
            if missing:
                warning = f"Precise detour unavailable for {missing} of {len(pool)} candidates."
        elif not calculator.available:
            warning = ROUTING_UNAVAILABLE_WARNING
    else:
        warning = PROXIMITY_ONLY_WARNING

    scored: list[CompatibilityCandidate] = []
    for candidate, route in zip(pool, routes):
        result = score_compatibility(driver_trip, candidate, route=route)
        if result.score < min_score:
            continue
        scored.append(
            CompatibilityCandidate(
                trip=candidate,
                score=result.score,
                reasoning=result.reasoning,
                shared_destination=result.shared_destination,
                detour_minutes=result.detour_minutes,
            )
        )

    scored.sort(key=lambda item: item.score, reverse=True)
    recommendations = scored[:limit]
    logger.info(
        f"Generated recommendations for trip {driver_trip.trip_id}: "
        f"{len(scored)} above threshold, {len(recommendations)} returned"
    )

    reliable = used_precise_routing and warning is None
    return RecommendationResult(
        recommendations=recommendations,
        total_candidates=len(pool),
        used_precise_routing=used_precise_routing,
        method="external_provider" if used_precise_routing else "local_approximation",
        reliable=reliable,
        warning=warning,
        metadata={
            "trip_date": driver_trip.trip_date.isoformat() if driver_trip.trip_date else None,
            "destination": driver_trip.dropoff.address,
            "pickup_time": driver_trip.pickup_time.strftime("%H:%M"),
            "min_score": min_score,
            "max_detour_seconds": settings.max_detour_seconds,
            "max_detour_meters": settings.max_detour_meters,
        },
    )

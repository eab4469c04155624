"""Ride-sharing compatibility scoring between a driver's trip and a candidate passenger."""

from __future__ import annotations

import re
from datetime import time

from ...models.domain import Trip
from ..routing.models import WaypointRoute
from ..routing.service import round_half_up
from .models import CompatibilityScore

DESTINATION_MATCH_POINTS = 30
DESTINATION_MISMATCH_POINTS = 5
PROXIMITY_WEIGHT = 0.25

PROXIMITY_ONLY_WARNING = "Scores use postcode proximity only; precise detours were not calculated."

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_AREA_LETTERS = re.compile(r"^[A-Z]+")


def estimate_postcode_proximity(postcode1: str | None, postcode2: str | None) -> int:
    """Coarse UK postcode closeness.

    100 for the same full postcode, 75 for the same outward code ("SW1A" in "SW1A 1AA"),
    40 for the same area letters, 10 otherwise and 0 when either postcode is missing.
    """
    if not postcode1 or not postcode2:
        return 0

    if postcode1.replace(" ", "").upper() == postcode2.replace(" ", "").upper():
        return 100

    outward1 = postcode1.split(" ")[0].upper()
    outward2 = postcode2.split(" ")[0].upper()
    if outward1 == outward2:
        return 75

    area1 = _AREA_LETTERS.match(outward1)
    area2 = _AREA_LETTERS.match(outward2)
    if (area1.group(0) if area1 else None) == (area2.group(0) if area2 else None):
        return 40

    return 10


def _normalize_destination(value: str) -> str:
    return _NON_ALPHANUMERIC.sub("", value.lower())


def destinations_similar(destination1: str, destination2: str) -> bool:
    """Exact or containment match after lower-casing and dropping non-alphanumerics."""
    norm1 = _normalize_destination(destination1)
    norm2 = _normalize_destination(destination2)
    return norm1 == norm2 or norm1 in norm2 or norm2 in norm1


def time_difference_minutes(time1: time, time2: time) -> int:
    minutes1 = time1.hour * 60 + time1.minute
    minutes2 = time2.hour * 60 + time2.minute
    return abs(minutes1 - minutes2)


def score_compatibility(
    driver_trip: Trip,
    candidate_trip: Trip,
    proximity: int | None = None,
    route: WaypointRoute | None = None,
) -> CompatibilityScore:
    """Additive 0-100 score with one reasoning line per signal.

    ``proximity`` defaults to the postcode proximity of the two pickups. Route
    efficiency only contributes when a precise ``route`` is available.
    """
    reasoning: list[str] = []
    score = 0

    shared_destination = destinations_similar(driver_trip.dropoff.address, candidate_trip.dropoff.address)
    if shared_destination:
        score += DESTINATION_MATCH_POINTS
        reasoning.append("✓ Same destination")
    else:
        score += DESTINATION_MISMATCH_POINTS
        reasoning.append("✗ Different destinations")

    if proximity is None:
        proximity = estimate_postcode_proximity(driver_trip.pickup.postcode, candidate_trip.pickup.postcode)
    score += round_half_up(proximity * PROXIMITY_WEIGHT)
    if proximity > 75:
        reasoning.append("✓ Very close proximity")
    elif proximity > 40:
        reasoning.append("≈ Same general area")
    else:
        reasoning.append("✗ Different areas")

    time_diff = time_difference_minutes(driver_trip.pickup_time, candidate_trip.pickup_time)
    if time_diff <= 15:
        score += 25
        reasoning.append("✓ Very similar pickup times")
    elif time_diff <= 30:
        score += 20
        reasoning.append("≈ Similar pickup times (±30 min)")
    elif time_diff <= 60:
        score += 10
        reasoning.append("≈ Pickup times within 1 hour")
    else:
        reasoning.append("✗ Different pickup times")

    detour_minutes = None
    if route is not None:
        detour_minutes = round_half_up(route.detour_duration / 60)
        if not route.feasible:
            reasoning.append(f"✗ Large detour (+{detour_minutes} min)")
        elif detour_minutes < 5:
            score += 20
            reasoning.append(f"✓ Minimal detour (+{detour_minutes} min)")
        elif detour_minutes < 10:
            score += 15
            reasoning.append(f"≈ Small detour (+{detour_minutes} min)")
        else:
            score += 10
            reasoning.append(f"≈ Moderate detour (+{detour_minutes} min)")

    if route is None:
        return CompatibilityScore(
            score=score,
            reasoning=reasoning,
            shared_destination=shared_destination,
            warning=PROXIMITY_ONLY_WARNING,
        )
    return CompatibilityScore(
        score=score,
        reasoning=reasoning,
        shared_destination=shared_destination,
        detour_minutes=detour_minutes,
        method="external_provider",
        reliable=True,
    )

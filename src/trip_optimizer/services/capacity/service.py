"""Vehicle-capacity grouping of a day's trips."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from ...models.domain import Trip
from ..carpool.compatibility import estimate_postcode_proximity, time_difference_minutes
from ..routing.service import round_half_up

# Minimum pickup postcode proximity for two trips to share a vehicle when a share window is used.
SHARED_PICKUP_MIN_PROXIMITY = 40

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CapacityGroup:
    group_id: int
    vehicle_capacity: int
    trips: List[Trip] = field(default_factory=list)
    total_passengers: int = 0

    @property
    def capacity_used_percent(self) -> float:
        return self.total_passengers / self.vehicle_capacity * 100

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.vehicle_capacity - self.total_passengers)

    @property
    def over_capacity(self) -> bool:
        return self.total_passengers > self.vehicle_capacity

    def add(self, trip: Trip) -> None:
        self.trips.append(trip)
        self.total_passengers += trip.passenger_count


@dataclass(slots=True)
class CapacityStatistics:
    total_trips: int
    total_passengers: int
    vehicles_needed: int
    vehicles_saved: int
    average_capacity_used: int
    efficiency: int


def check_capacity_constraint(current_load: int, additional_passengers: int, vehicle_capacity: int) -> tuple[bool, int]:
    """Return (fits, remaining seats after adding) for a vehicle."""
    new_load = current_load + additional_passengers
    return new_load <= vehicle_capacity, max(0, vehicle_capacity - new_load)


def _shares_window(group: CapacityGroup, trip: Trip, share_window_minutes: int) -> bool:
    anchor = group.trips[0]
    if time_difference_minutes(anchor.pickup_time, trip.pickup_time) > share_window_minutes:
        return False
    proximity = estimate_postcode_proximity(anchor.pickup.postcode, trip.pickup.postcode)
    return proximity > SHARED_PICKUP_MIN_PROXIMITY


def group_by_capacity(
    trips: Sequence[Trip],
    vehicle_capacity: int,
    *,
    share_window_minutes: int | None = None,
) -> list[CapacityGroup]:
    """First-fit packing of trips (by pickup time) into vehicles of ``vehicle_capacity`` seats.

    Each trip joins the first group with enough free seats, otherwise it opens a new
    group. A trip larger than a whole vehicle gets a group of its own flagged
    ``over_capacity``. With ``share_window_minutes`` a trip may only join a group whose
    first trip picks up within that window and from a nearby postcode.
    """
    if vehicle_capacity < 1:
        raise ValueError("vehicle_capacity must be >= 1")

    groups: list[CapacityGroup] = []
    ordered = sorted(trips, key=lambda trip: trip.pickup_time)
    for trip in ordered:
        target = None
        if trip.passenger_count <= vehicle_capacity:
            for group in groups:
                fits, _ = check_capacity_constraint(group.total_passengers, trip.passenger_count, vehicle_capacity)
                if not fits:
                    continue
                if share_window_minutes is not None and not _shares_window(group, trip, share_window_minutes):
                    continue
                target = group
                break
        else:
            logger.warning(
                f"Trip {trip.trip_id} carries {trip.passenger_count} passengers, "
                f"more than a {vehicle_capacity}-seat vehicle; grouping it on its own."
            )

        if target is None:
            target = CapacityGroup(group_id=len(groups) + 1, vehicle_capacity=vehicle_capacity)
            groups.append(target)
        target.add(trip)

    return groups


def summarize_groups(trips: Sequence[Trip], groups: Sequence[CapacityGroup]) -> CapacityStatistics:
    total_trips = len(trips)
    vehicles_needed = len(groups)
    vehicles_saved = max(0, total_trips - vehicles_needed)
    average_used = sum(group.capacity_used_percent for group in groups) / vehicles_needed if groups else 0.0
    return CapacityStatistics(
        total_trips=total_trips,
        total_passengers=sum(trip.passenger_count for trip in trips),
        vehicles_needed=vehicles_needed,
        vehicles_saved=vehicles_saved,
        average_capacity_used=round_half_up(average_used),
        efficiency=round_half_up(vehicles_saved / total_trips * 100) if total_trips else 0,
    )

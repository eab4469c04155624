"""Precise detour calculation for picking up an extra passenger."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import Location
from ..routing.cost import DistanceMatrixProvider
from ..routing.maps_client import build_client
from ..routing.models import WaypointRoute

DETOUR_UNAVAILABLE_WARNING = "Precise routing unavailable (Google Maps not configured or request failed)."

logger = logging.getLogger(__name__)


class DirectionsProvider(Protocol):
    def directions(self, origin: str, destination: str, waypoints: Sequence[str]) -> dict: ...


def is_detour_feasible(
    detour_seconds: float,
    detour_meters: float,
    *,
    max_seconds: float | None = None,
    max_meters: float | None = None,
) -> bool:
    """Both limits are exclusive: 899 s and 8000 m pass, 900 s or 8046 m do not."""
    max_seconds = settings.max_detour_seconds if max_seconds is None else max_seconds
    max_meters = settings.max_detour_meters if max_meters is None else max_meters
    return detour_seconds < max_seconds and detour_meters < max_meters


class DetourCalculator:
    """Compare driver -> destination with driver -> passenger -> destination.

    Needs both the distance-matrix and directions providers. ``route_with_waypoint``
    returns None when either is unavailable or fails; callers must not read that as an
    infeasible detour.
    """

    def __init__(
        self,
        matrix_provider: DistanceMatrixProvider | None = None,
        directions_provider: DirectionsProvider | None = None,
        *,
        use_provider: bool = True,
    ) -> None:
        if use_provider:
            matrix_provider = matrix_provider or build_client("distance_matrix")
            directions_provider = directions_provider or build_client("directions")
        self.matrix_provider = matrix_provider
        self.directions_provider = directions_provider

    @property
    def available(self) -> bool:
        return self.matrix_provider is not None and self.directions_provider is not None

    def route_with_waypoint(
        self,
        driver_location: Location,
        passenger_location: Location,
        destination: Location,
    ) -> WaypointRoute | None:
        if not self.available:
            return None
        try:
            direct = self.matrix_provider.distance_matrix(
                [driver_location.provider_query],
                [destination.provider_query],
            )
            direct_distance = direct["distances"][0][0]
            direct_duration = direct["durations"][0][0]
            if direct_distance is None or direct_duration is None:
                logger.warning(f"No direct route from '{driver_location.address}' to '{destination.address}'.")
                return None

            response = self.directions_provider.directions(
                driver_location.address,
                destination.address,
                [passenger_location.address],
            )
            legs = response["routes"][0]["legs"]
            total_distance = float(sum(leg["distance"]["value"] for leg in legs))
            total_duration = float(sum(leg["duration"]["value"] for leg in legs))
        except Exception as e:
            logger.warning(f"Detour calculation via '{passenger_location.address}' failed: {e}")
            return None

        detour_distance = total_distance - float(direct_distance)
        detour_duration = total_duration - float(direct_duration)
        return WaypointRoute(
            total_distance=total_distance,
            total_duration=total_duration,
            detour_distance=detour_distance,
            detour_duration=detour_duration,
            feasible=is_detour_feasible(detour_duration, detour_distance),
        )

"""Travel cost estimation between locations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, Sequence

import numpy as np

from ...models.domain import Location, Trip
from ..geospatial import haversine_matrix_miles, meters_to_miles
from .geocoding import LocationResolver
from .maps_client import build_client
from .models import CostEstimate, CostMatrix

NOT_CONFIGURED_WARNING = "Using estimated distances (Google Maps API not configured)."
UNAVAILABLE_WARNING = "Using estimated distances (Google Maps unavailable). Results may be less accurate."
APPROXIMATE_POSITION_WARNING = "Some addresses could not be geocoded; their positions are approximate."

# A provider matrix with more unpriced cells than this is discarded in favour of the local estimate.
MAX_UNKNOWN_CELL_RATE = 0.5

logger = logging.getLogger(__name__)


class DistanceMatrixProvider(Protocol):
    def distance_matrix(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        departure_time: datetime | None = None,
    ) -> dict: ...


class CostEstimator:
    """Build travel cost matrices from the distance-matrix provider or great-circle distances.

    Every result carries a ``method`` tag. Provider errors never escape: they switch the
    call to the local path and attach a warning.
    """

    def __init__(
        self,
        provider: DistanceMatrixProvider | None = None,
        resolver: LocationResolver | None = None,
        *,
        use_provider: bool = True,
    ) -> None:
        if provider is None and use_provider:
            provider = build_client("distance_matrix")
        self.provider = provider
        self.resolver = resolver or LocationResolver(use_provider=use_provider)

    def estimate_matrix(
        self,
        origins: Sequence[Location],
        destinations: Sequence[Location],
        *,
        zero_diagonal: bool = False,
        departure_time: datetime | None = None,
    ) -> CostMatrix:
        if not origins or not destinations:
            raise ValueError("At least one origin and one destination are required.")
        if zero_diagonal and len(origins) != len(destinations):
            raise ValueError("A zero diagonal requires a square matrix.")

        if self.provider is None:
            warning = NOT_CONFIGURED_WARNING
        else:
            try:
                table = self.provider.distance_matrix(
                    [origin.provider_query for origin in origins],
                    [destination.provider_query for destination in destinations],
                    departure_time,
                )
                matrix = _matrix_from_provider(table, len(origins), len(destinations), zero_diagonal)
            except Exception as e:
                logger.warning(f"Distance matrix request failed: {e}. Using great-circle fallback.")
                warning = UNAVAILABLE_WARNING
            else:
                return matrix

        return self._local_matrix(origins, destinations, zero_diagonal, warning)

    def estimate_pair(self, origin: Location, destination: Location) -> CostEstimate:
        matrix = self.estimate_matrix([origin], [destination])
        duration = None
        if matrix.durations is not None and not matrix.unknown[0, 0]:
            duration = float(matrix.durations[0, 0])
        return CostEstimate(
            distance_miles=matrix.cost(0, 0),
            duration_seconds=duration,
            method=matrix.method,
            warning=matrix.warning,
            known=not bool(matrix.unknown[0, 0]),
        )

    def estimate_trip_chain(self, trips: Sequence[Trip], departure_time: datetime | None = None) -> CostMatrix:
        """Cost from each trip's dropoff to every trip's pickup."""
        return self.estimate_matrix(
            [trip.dropoff for trip in trips],
            [trip.pickup for trip in trips],
            zero_diagonal=True,
            departure_time=departure_time,
        )

    def _local_matrix(
        self,
        origins: Sequence[Location],
        destinations: Sequence[Location],
        zero_diagonal: bool,
        warning: str,
    ) -> CostMatrix:
        logger.info(f"Computing {len(origins)}x{len(destinations)} cost matrix with great-circle distances")
        resolved = self.resolver.resolve_many([*origins, *destinations])
        origin_points = [(item.coordinates.latitude, item.coordinates.longitude) for item in resolved[: len(origins)]]
        destination_points = [(item.coordinates.latitude, item.coordinates.longitude) for item in resolved[len(origins) :]]

        distances = haversine_matrix_miles(origin_points, destination_points)
        if zero_diagonal:
            np.fill_diagonal(distances, 0.0)

        if self.resolver.provider_available and any(item.approximated for item in resolved):
            warning = f"{warning} {APPROXIMATE_POSITION_WARNING}"

        return CostMatrix(
            distances=distances,
            unknown=np.zeros(distances.shape, dtype=bool),
            method="local_approximation",
            durations=None,
            warning=warning,
        )


def _matrix_from_provider(table: dict, rows: int, columns: int, zero_diagonal: bool) -> CostMatrix:
    raw_distances = table.get("distances")
    raw_durations = table.get("durations")
    if raw_distances is None or raw_durations is None:
        raise ValueError("Distance matrix response missing distances or durations.")

    distances = np.zeros((rows, columns), dtype=float)
    durations = np.zeros((rows, columns), dtype=float)
    unknown = np.zeros((rows, columns), dtype=bool)
    if len(raw_distances) != rows or any(len(row) != columns for row in raw_distances):
        raise ValueError("Distance matrix response shape does not match the request.")

    for i in range(rows):
        for j in range(columns):
            meters = raw_distances[i][j]
            seconds = raw_durations[i][j]
            if meters is None:
                unknown[i, j] = True
                continue
            distances[i, j] = meters_to_miles(float(meters))
            durations[i, j] = float(seconds) if seconds is not None else 0.0

    if zero_diagonal:
        np.fill_diagonal(distances, 0.0)
        np.fill_diagonal(durations, 0.0)
        np.fill_diagonal(unknown, False)

    priced_cells = rows * columns - (min(rows, columns) if zero_diagonal else 0)
    unknown_cells = int(unknown.sum())
    if priced_cells and unknown_cells / priced_cells > MAX_UNKNOWN_CELL_RATE:
        raise ValueError(f"Provider could not price {unknown_cells}/{priced_cells} cells.")

    warning = None
    if unknown_cells:
        warning = f"{unknown_cells} distance lookup(s) failed; those legs are treated as unknown cost."
    return CostMatrix(
        distances=distances,
        unknown=unknown,
        method="external_provider",
        durations=durations,
        warning=warning,
    )

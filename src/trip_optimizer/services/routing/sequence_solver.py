"""Greedy nearest-neighbour sequencing of trips or stops.

The first item always stays first. From there the cheapest unvisited item (by the
cost matrix row of the current item) is appended; ties go to the earliest input index.
The heuristic is O(n^2) and does not guarantee a minimal tour.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

import numpy as np

from ...config import settings
from .models import CostMatrix, SequenceResult

T = TypeVar("T")


def nearest_neighbour_order(matrix: CostMatrix, *, unknown_as_maximal: bool | None = None) -> list[int]:
    rows, columns = matrix.shape
    if rows != columns:
        raise ValueError(f"Sequencing needs a square cost matrix, got {rows}x{columns}.")
    if rows <= 1:
        return list(range(rows))

    if unknown_as_maximal is None:
        unknown_as_maximal = settings.unknown_cost_as_maximal
    selection_costs = matrix.distances.astype(float, copy=True)
    if unknown_as_maximal:
        selection_costs[matrix.unknown] = np.inf

    visited = np.zeros(rows, dtype=bool)
    visited[0] = True
    order = [0]
    current = 0
    while len(order) < rows:
        candidates = np.flatnonzero(~visited)
        # argmin returns the first minimum, so earlier indices win ties.
        nearest = int(candidates[int(np.argmin(selection_costs[current, candidates]))])
        visited[nearest] = True
        order.append(nearest)
        current = nearest
    return order


def path_cost(matrix: CostMatrix, indices: Sequence[int]) -> float:
    """Sum of consecutive leg costs along ``indices``."""
    return float(sum(matrix.cost(a, b) for a, b in zip(indices, indices[1:])))


def sequence(items: Sequence[T], matrix: CostMatrix, *, unknown_as_maximal: bool | None = None) -> SequenceResult[T]:
    """Reorder ``items`` (indexed like ``matrix``) and report before/after totals."""
    if len(items) <= 1:
        return SequenceResult(order=list(items), indices=list(range(len(items))), total_before=0.0, total_after=0.0)
    if matrix.shape != (len(items), len(items)):
        raise ValueError(f"Cost matrix shape {matrix.shape} does not match {len(items)} items.")

    original = list(range(len(items)))
    indices = nearest_neighbour_order(matrix, unknown_as_maximal=unknown_as_maximal)
    return SequenceResult(
        order=[items[index] for index in indices],
        indices=indices,
        total_before=path_cost(matrix, original),
        total_after=path_cost(matrix, indices),
    )

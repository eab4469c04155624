"""Location resolution, travel cost estimation and trip sequencing."""

from .cost import CostEstimator
from .geocoding import LocationResolver, approximate_coordinates
from .sequence_solver import nearest_neighbour_order, sequence
from .service import optimize_route

__all__ = [
    "CostEstimator",
    "LocationResolver",
    "approximate_coordinates",
    "nearest_neighbour_order",
    "sequence",
    "optimize_route",
]

"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

EARTH_RADIUS_MILES = 3959.0
MILES_PER_METER = 0.000621371


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in miles between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def meters_to_miles(meters: float) -> float:
    return meters * MILES_PER_METER


def haversine_matrix_miles(
    origins: Sequence[tuple[float, float]],
    destinations: Sequence[tuple[float, float]],
) -> np.ndarray:
    """Pairwise great-circle distances in miles between (lat, lon) origins and destinations."""
    origin_array = np.radians(np.asarray(origins, dtype=float).reshape(-1, 2))
    destination_array = np.radians(np.asarray(destinations, dtype=float).reshape(-1, 2))
    phi1 = origin_array[:, 0][:, np.newaxis]
    lambda1 = origin_array[:, 1][:, np.newaxis]
    phi2 = destination_array[:, 0][np.newaxis, :]
    lambda2 = destination_array[:, 1][np.newaxis, :]

    a = np.sin((phi2 - phi1) / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin((lambda2 - lambda1) / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c

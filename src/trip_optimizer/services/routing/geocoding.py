"""Address to coordinate resolution with a deterministic local fallback."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import Coordinates, Location
from .maps_client import build_client
from .models import ResolvedLocation

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    def geocode(self, query: str) -> Coordinates | None: ...


def approximate_coordinates(address: str) -> Coordinates:
    """Pseudo-coordinate derived from the character sum of ``address``.

    The result is stable for the same text but has no geographic meaning: it only keeps
    distance comparisons self-consistent when no geocoder is available.
    """
    char_sum = sum(ord(char) for char in address)
    offset = (char_sum % settings.fallback_hash_modulus) / settings.fallback_hash_scale
    return Coordinates(
        latitude=settings.fallback_anchor_latitude + offset,
        longitude=settings.fallback_anchor_longitude + offset,
    )


def build_geocoding_query(address: str, postcode: str | None = None) -> str:
    parts = [address]
    if postcode and postcode.strip():
        parts.append(postcode.strip())
    if settings.geocoding_region:
        parts.append(settings.geocoding_region)
    return ", ".join(parts)


class LocationResolver:
    """Resolve locations through the geocoding provider, falling back to approximation.

    ``resolve`` never raises: provider errors and empty results degrade to
    :func:`approximate_coordinates`, reported through the ``method`` tag.
    """

    def __init__(self, geocoder: Geocoder | None = None, *, use_provider: bool = True) -> None:
        if geocoder is None and use_provider:
            geocoder = build_client("geocoding")
        self.geocoder = geocoder

    @property
    def provider_available(self) -> bool:
        return self.geocoder is not None

    def resolve(self, address: str, postcode: str | None = None) -> ResolvedLocation:
        location = Location(address=address, postcode=postcode)
        if self.geocoder is not None:
            query = build_geocoding_query(address, postcode)
            try:
                coordinates = self.geocoder.geocode(query)
            except Exception as e:
                logger.warning(f"Geocoding failed for '{query}': {e}. Using approximate coordinates.")
                coordinates = None
            else:
                if coordinates is None:
                    logger.warning(f"Geocoding returned no results for '{query}'. Using approximate coordinates.")
            if coordinates is not None:
                return ResolvedLocation(location=location, coordinates=coordinates, method="external_provider")

        return ResolvedLocation(
            location=location,
            coordinates=approximate_coordinates(address),
            method="local_approximation",
        )

    def resolve_location(self, location: Location) -> ResolvedLocation:
        """Resolve a :class:`Location`, keeping coordinates it already carries."""
        if location.has_coordinates:
            return ResolvedLocation(
                location=location,
                coordinates=Coordinates(latitude=location.latitude, longitude=location.longitude),
                method="external_provider",
            )
        resolved = self.resolve(location.address, location.postcode)
        resolved.location = location
        return resolved

    def resolve_many(self, locations: Sequence[Location]) -> list[ResolvedLocation]:
        """Resolve every location independently; results keep the input order."""
        if not locations:
            return []
        pending = [location for location in locations if not location.has_coordinates]
        if len(pending) <= 1 or self.geocoder is None:
            return [self.resolve_location(location) for location in locations]
        with ThreadPoolExecutor(max_workers=settings.max_parallel_requests) as executor:
            return list(executor.map(self.resolve_location, locations))

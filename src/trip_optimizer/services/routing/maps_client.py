"""HTTP client for the Google Maps geocoding, distance-matrix and directions services."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Sequence

import httpx

from ...config import ProviderKind, settings
from ...models.domain import Coordinates

# When more than this share of matrix chunks fail the provider is treated as down.
CRITICAL_CHUNK_FAILURE_RATE = 0.5

logger = logging.getLogger(__name__)


class ProviderStatusError(ValueError):
    """The provider answered but reported a non-OK status."""

    def __init__(self, endpoint: str, status: str, message: str | None = None) -> None:
        self.endpoint = endpoint
        self.status = status
        detail = f"{endpoint} returned status {status}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)


class GoogleMapsClient:
    def __init__(
        self,
        kind: ProviderKind,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        max_elements_per_request: int | None = None,
        max_parallel_requests: int | None = None,
    ) -> None:
        self.kind = kind
        self.api_key = api_key or settings.api_key_for(kind)
        if not self.api_key:
            raise ValueError(f"Google Maps {kind} API key is not configured.")
        self.base_url = (base_url or settings.maps_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        self.max_elements_per_request = max_elements_per_request or settings.max_matrix_elements_per_request
        self.max_parallel_requests = max_parallel_requests or settings.max_parallel_requests

    def _get_client(self) -> httpx.Client:
        # One client per call so matrix chunks can run on worker threads.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=settings.provider_connect_timeout_seconds),
        )

    def _get_json(self, endpoint: str, params: dict[str, Any]) -> dict:
        """GET ``{base_url}/{endpoint}/json`` with retries on transport errors."""
        url = f"{self.base_url}/{endpoint}/json"
        request_params = {**params, "key": self.api_key}
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=request_params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Google Maps {endpoint} request timed out after {self.max_retries} retries: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Google Maps {endpoint} timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(f"Failed to connect to Google Maps at {self.base_url}: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Google Maps network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def geocode(self, query: str) -> Coordinates | None:
        """Return the first geocoding result for ``query``, or None when nothing matched."""
        data = self._get_json("geocode", {"address": query})
        status = data.get("status")
        if status == "ZERO_RESULTS" or (status == "OK" and not data.get("results")):
            return None
        if status != "OK":
            raise ProviderStatusError("geocode", str(status), data.get("error_message"))
        location = data["results"][0]["geometry"]["location"]
        return Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))

    def _matrix_single_request(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        departure_time: datetime | None = None,
    ) -> dict:
        params: dict[str, Any] = {
            "origins": "|".join(origins),
            "destinations": "|".join(destinations),
            "units": "metric",
        }
        if departure_time is not None:
            params["departure_time"] = int(departure_time.timestamp())
            params["traffic_model"] = "best_guess"
        data = self._get_json("distancematrix", params)
        if data.get("status") != "OK":
            raise ProviderStatusError("distancematrix", str(data.get("status")), data.get("error_message"))

        distances: list[list[float | None]] = []
        durations: list[list[float | None]] = []
        for row in data.get("rows", []):
            distance_row: list[float | None] = []
            duration_row: list[float | None] = []
            for element in row.get("elements", []):
                if element.get("status") == "OK":
                    distance_row.append(float(element["distance"]["value"]))
                    duration_row.append(float(element["duration"]["value"]))
                else:
                    distance_row.append(None)
                    duration_row.append(None)
            distances.append(distance_row)
            durations.append(duration_row)
        if len(distances) != len(origins) or any(len(row) != len(destinations) for row in distances):
            raise ValueError("Distance matrix response shape does not match the request.")
        return {"distances": distances, "durations": durations}

    def _process_chunk_request(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        origin_start: int,
        destination_start: int,
        departure_time: datetime | None,
    ) -> tuple[int, int, dict | None]:
        try:
            result = self._matrix_single_request(origins, destinations, departure_time)
            return (origin_start, destination_start, result)
        except Exception as e:
            logger.warning(
                f"Failed to get distance matrix chunk "
                f"[{origin_start}:{origin_start + len(origins)}] -> "
                f"[{destination_start}:{destination_start + len(destinations)}]: {e}"
            )
            return (origin_start, destination_start, None)

    def distance_matrix(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        departure_time: datetime | None = None,
    ) -> dict:
        """Distance (meters) and duration (seconds) for every origin/destination pair.

        Cells the provider could not price are ``None``. Requests larger than
        ``max_elements_per_request`` in either dimension are split into chunks and sent
        in parallel; a failed chunk leaves its cells ``None``.
        """
        if not origins or not destinations:
            raise ValueError("At least one origin and one destination are required.")

        chunk_size = self.max_elements_per_request
        if len(origins) <= chunk_size and len(destinations) <= chunk_size:
            return self._matrix_single_request(origins, destinations, departure_time)

        distances: list[list[float | None]] = [[None] * len(destinations) for _ in origins]
        durations: list[list[float | None]] = [[None] * len(destinations) for _ in origins]

        chunk_requests = [
            (origins[i : i + chunk_size], destinations[j : j + chunk_size], i, j, departure_time)
            for i in range(0, len(origins), chunk_size)
            for j in range(0, len(destinations), chunk_size)
        ]
        total_requests = len(chunk_requests)
        logger.info(
            f"Chunking distance matrix request: {len(origins)}x{len(destinations)} "
            f"into {total_requests} requests (max {self.max_parallel_requests} concurrent)"
        )

        failed_chunks = 0
        with ThreadPoolExecutor(max_workers=self.max_parallel_requests) as executor:
            futures = [executor.submit(self._process_chunk_request, *request) for request in chunk_requests]
            for future in as_completed(futures):
                origin_start, destination_start, result = future.result()
                if result is None:
                    failed_chunks += 1
                    continue
                for local_i, row in enumerate(result["distances"]):
                    for local_j, value in enumerate(row):
                        distances[origin_start + local_i][destination_start + local_j] = value
                        durations[origin_start + local_i][destination_start + local_j] = result["durations"][local_i][local_j]

        failure_rate = failed_chunks / total_requests
        if failure_rate > CRITICAL_CHUNK_FAILURE_RATE:
            raise ConnectionError(
                f"Critical failure: {failed_chunks}/{total_requests} distance matrix chunks failed "
                f"({failure_rate * 100:.1f}%)."
            )
        if failed_chunks:
            logger.warning(f"Partial failure: {failed_chunks}/{total_requests} distance matrix chunks failed.")

        return {"distances": distances, "durations": durations}

    def directions(self, origin: str, destination: str, waypoints: Sequence[str]) -> dict:
        """Route from ``origin`` to ``destination`` via ``waypoints`` with waypoint order optimisation."""
        params: dict[str, Any] = {"origin": origin, "destination": destination}
        if waypoints:
            params["waypoints"] = "optimize:true|" + "|".join(waypoints)
        data = self._get_json("directions", params)
        if data.get("status") != "OK" or not data.get("routes"):
            raise ProviderStatusError("directions", str(data.get("status")), data.get("error_message"))
        return data


def build_client(kind: ProviderKind) -> GoogleMapsClient | None:
    """Return a client for ``kind``, or None when that call type has no usable credential."""
    if not settings.api_key_for(kind):
        return None
    return GoogleMapsClient(kind)


def provider_status() -> dict[str, bool]:
    return {
        kind: settings.api_key_for(kind) is not None
        for kind in ("geocoding", "distance_matrix", "directions")
    }


def check_health() -> bool:
    """Check the provider by geocoding a well-known postcode."""
    client = build_client("geocoding")
    if client is None:
        return False
    try:
        return client.geocode(f"SW1A 1AA, {settings.geocoding_region}") is not None
    except (httpx.HTTPError, ConnectionError, ValueError):
        return False

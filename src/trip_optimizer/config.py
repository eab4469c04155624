"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderKind = Literal["geocoding", "distance_matrix", "directions"]

PLACEHOLDER_API_KEY = "your_google_maps_api_key_here"


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPOPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Trip Optimizer API"
    api_prefix: str = "/api"

    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps credential shared by every provider call type.",
    )
    geocoding_api_key: Optional[str] = Field(default=None, description="Override key for geocoding calls.")
    distance_matrix_api_key: Optional[str] = Field(default=None, description="Override key for distance-matrix calls.")
    directions_api_key: Optional[str] = Field(default=None, description="Override key for directions calls.")
    maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    provider_timeout_seconds: float = Field(default=10.0, gt=0.0)
    provider_connect_timeout_seconds: float = Field(default=5.0, gt=0.0)
    provider_max_retries: int = Field(default=1, ge=0)
    provider_backoff_seconds: float = Field(default=0.5, ge=0.0)
    max_matrix_elements_per_request: int = Field(
        default=10,
        ge=1,
        description="Origins (and destinations) sent per distance-matrix request.",
    )
    max_parallel_requests: int = Field(default=8, ge=1)

    geocoding_region: str = Field(default="UK", description="Region suffix appended to geocoding queries.")
    fallback_anchor_latitude: float = Field(default=53.38)
    fallback_anchor_longitude: float = Field(default=-1.47)
    fallback_hash_modulus: int = Field(default=100, ge=1)
    fallback_hash_scale: float = Field(default=1000.0, gt=0.0)

    minutes_per_mile: float = Field(default=2.0, ge=0.0)
    default_vehicle_capacity: int = Field(default=8, ge=1)
    max_detour_seconds: int = Field(default=900, ge=0)
    max_detour_meters: int = Field(default=8046, ge=0)
    min_recommendation_score: int = Field(default=20, ge=0, le=100)
    max_recommendations: int = Field(default=10, ge=1)
    unknown_cost_as_maximal: bool = Field(
        default=True,
        description="Treat matrix cells the provider could not price as the least attractive edge.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    def api_key_for(self, kind: ProviderKind) -> Optional[str]:
        """Return the usable credential for a provider call type, or None when unconfigured.

        An explicitly set per-type key wins over the shared key, so setting it blank
        disables that call type on its own.
        """
        override = {
            "geocoding": self.geocoding_api_key,
            "distance_matrix": self.distance_matrix_api_key,
            "directions": self.directions_api_key,
        }[kind]
        candidate = override if override is not None else self.google_maps_api_key
        if candidate is None:
            return None
        candidate = candidate.strip()
        if not candidate or candidate == PLACEHOLDER_API_KEY:
            return None
        return candidate


settings = Settings()

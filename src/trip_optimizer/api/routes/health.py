"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_maps_functions():
    """Lazy import to avoid startup failures."""
    from ...services.routing.maps_client import check_health, provider_status
    return check_health, provider_status


@router.get("/health/maps", status_code=status.HTTP_200_OK)
def health_maps() -> dict:
    """Report which Google Maps call types are configured and check geocoding."""
    try:
        check_health, provider_status = _get_maps_functions()
        configured = provider_status()
        healthy = check_health() if configured["geocoding"] else False
        return {
            "service": "google_maps",
            "configured": configured,
            "healthy": healthy,
            "fallback": not all(configured.values()),
        }
    except Exception as e:
        return {"service": "google_maps", "healthy": False, "error": str(e)}

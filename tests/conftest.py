import pytest

from trip_optimizer.config import settings


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch: pytest.MonkeyPatch):
    """Run every test in fallback mode unless it injects a fake provider."""
    for field in ("google_maps_api_key", "geocoding_api_key", "distance_matrix_api_key", "directions_api_key"):
        monkeypatch.setattr(settings, field, None)
    yield

"""Route group exports."""

from . import carpool, health, routes

__all__ = ["routes", "carpool", "health"]

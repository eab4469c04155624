"""Batch optimisation across drivers and days."""

from .service import batch_optimize, efficiency_score, efficiency_status

__all__ = ["batch_optimize", "efficiency_score", "efficiency_status"]

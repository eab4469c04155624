"""Community transport trip optimisation service."""

__version__ = "0.1.0"

"""Route group exports."""

from . import health, routes, units

__all__ = ["health", "routes", "units"]

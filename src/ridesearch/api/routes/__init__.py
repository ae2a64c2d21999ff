"""Route group exports."""

from . import health, rides

__all__ = ["health", "rides"]

"""Drawing surfaces."""

from .surface import PillowSurface, Surface

__all__ = ["PillowSurface", "Surface"]

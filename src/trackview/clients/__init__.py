"""External API client modules."""

from .genes import GeneClient, GeneInfo
from .ttl_cache import BoundedTTLCache

__all__ = [
    "BoundedTTLCache",
    "GeneClient",
    "GeneInfo",
]

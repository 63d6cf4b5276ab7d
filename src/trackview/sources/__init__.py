"""Feature source adapters."""

from .vcf import VcfFeatureSource

__all__ = ["VcfFeatureSource"]

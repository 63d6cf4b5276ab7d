"""Visual tracks and their layout rules."""

from .base import DisplayMode, PixelBounds, RenderContext, Track
from .layout import VariantLayout, compute_layout, compute_visibility_window, normalize_bar
from .popup import SEPARATOR, GenotypeClass, PopupField, call_fields, variant_fields
from .variant import VariantTrack

__all__ = [
    "SEPARATOR",
    "DisplayMode",
    "GenotypeClass",
    "PixelBounds",
    "PopupField",
    "RenderContext",
    "Track",
    "VariantLayout",
    "VariantTrack",
    "call_fields",
    "compute_layout",
    "compute_visibility_window",
    "normalize_bar",
    "variant_fields",
]

"""Row/density layout for variant tracks.

A ``VariantLayout`` captures every mode-dependent number the draw and
hit-test paths need. It is computed once per display mode change (or feature
set load) instead of being re-derived per pixel.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import (
    DEFAULT_VISIBILITY_WINDOW,
    MAX_CALL_BAND_HEIGHT,
    MAX_BAR_WIDTH,
    MIN_BAR_WIDTH,
    VARIANT_BAND_TOP,
    VGAP,
    VISIBILITY_BASE_BP,
    VISIBILITY_MIN_CALL_SETS,
    VISIBILITY_SCALE,
)
from ..core.features import CallSet, Variant
from .base import DisplayMode


@dataclass(frozen=True)
class VariantLayout:
    """Pixel geometry of a variant track for one display mode."""

    display_mode: DisplayMode
    n_rows: int
    n_calls: int
    variant_height: float
    call_height: float

    @property
    def show_calls(self) -> bool:
        return self.display_mode is not DisplayMode.COLLAPSED and self.n_calls > 0

    @property
    def variant_band_height(self) -> float:
        return VARIANT_BAND_TOP + self.n_rows * (self.variant_height + VGAP)

    @property
    def required_height(self) -> float:
        if self.display_mode is DisplayMode.COLLAPSED:
            return VARIANT_BAND_TOP + self.variant_height
        return (
            self.variant_band_height + VGAP + self.n_calls * self.n_rows * self.call_height
        )

    def variant_y(self, row: int) -> float:
        if self.display_mode is DisplayMode.COLLAPSED:
            return VARIANT_BAND_TOP
        return VARIANT_BAND_TOP + row * (self.variant_height + VGAP)

    def call_y(self, call_index: int, row: int) -> float:
        return self.variant_band_height + VGAP + (call_index + row) * self.call_height

    def variant_row_at(self, y: float) -> int:
        return math.floor((y - VARIANT_BAND_TOP) / (self.variant_height + VGAP))

    def call_slot_at(self, y: float) -> int:
        """Call slot under ``y``; subtract a variant's row to get its call index."""
        return math.floor((y - self.variant_band_height - VGAP) / self.call_height)


def count_rows(features: Sequence[Variant]) -> int:
    """``max(row) + 1`` over the features, at least 1."""
    max_row = 0
    for feature in features:
        if feature.row > max_row:
            max_row = feature.row
    return max_row + 1


def clamp_expanded_call_height(n_calls: int, n_rows: int, expanded_call_height: float) -> float:
    """Shrink expanded call rows so the call band stays within its height limit."""
    cells = n_calls * n_rows
    if cells * expanded_call_height > MAX_CALL_BAND_HEIGHT:
        return max(1, MAX_CALL_BAND_HEIGHT / cells)
    return expanded_call_height


def compute_layout(
    features: Sequence[Variant],
    display_mode: DisplayMode,
    n_calls: int,
    variant_height: float,
    squished_call_height: float,
    expanded_call_height: float,
) -> VariantLayout:
    if display_mode is DisplayMode.COLLAPSED:
        return VariantLayout(display_mode, 1, n_calls, variant_height, squished_call_height)

    n_rows = count_rows(features)
    if display_mode is DisplayMode.SQUISHED:
        call_height = squished_call_height
    else:
        clamped = clamp_expanded_call_height(n_calls, n_rows, expanded_call_height)
        call_height = max(clamped, squished_call_height)
    return VariantLayout(display_mode, n_rows, n_calls, variant_height, call_height)


def compute_visibility_window(call_sets: Sequence[CallSet] | None) -> float:
    """Auto visibility window (bp): smaller for larger cohorts."""
    if not call_sets or len(call_sets) < VISIBILITY_MIN_CALL_SETS:
        return DEFAULT_VISIBILITY_WINDOW
    return VISIBILITY_BASE_BP + VISIBILITY_SCALE / len(call_sets)


def normalize_bar(px: float, pw: float) -> tuple[float, float]:
    """Keep variant marks between 3 and 5 pixels wide.

    Narrow bars grow to 3 and shift left by one; wide bars lose 2 and shift
    right by one.
    """
    if pw < MIN_BAR_WIDTH:
        return px - 1, MIN_BAR_WIDTH
    if pw > MAX_BAR_WIDTH:
        return px + 1, pw - 2
    return px, pw

"""Whole-genome coordinate table: every chromosome on one synthetic axis."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ..reference import normalize_chromosome_name


class WholeGenomeTable:
    """Contiguous pixel spans, one per chromosome, across ``surface_width``.

    Span ``i`` is ``round(surface_width * length[i] / total_bp)`` pixels wide
    and starts where span ``i - 1`` ends. The last span absorbs rounding error
    and always ends at ``surface_width``. Instances are never edited; a width
    change builds a new table.
    """

    def __init__(self, chromosome_lengths: Sequence[tuple[str, int]], surface_width: int):
        self.surface_width = int(surface_width)
        self.names: tuple[str, ...] = tuple(name for name, _ in chromosome_lengths)
        self.lengths = np.array([length for _, length in chromosome_lengths], dtype=np.int64)
        self.total_bp = int(self.lengths.sum())
        self._index = {normalize_chromosome_name(n): i for i, n in enumerate(self.names)}

        if self.total_bp > 0 and len(self.names) > 0:
            widths = np.rint(self.surface_width * self.lengths / self.total_bp).astype(np.int64)
            ends = np.minimum(np.cumsum(widths), self.surface_width)
            ends[-1] = self.surface_width
        else:
            ends = np.zeros(len(self.names), dtype=np.int64)

        self.ends = ends
        self.starts = np.concatenate(([0], ends[:-1])).astype(np.int64) if len(ends) else ends

    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        return (
            f"WholeGenomeTable(chromosomes={len(self.names)}, "
            f"total_bp={self.total_bp}, surface_width={self.surface_width})"
        )

    def chromosome_index(self, name: str) -> int | None:
        """0-based axis index; for a human reference X is 22 and Y is 23."""
        return self._index.get(normalize_chromosome_name(name))

    def chromosome_to_pixel_span(self, name: str) -> tuple[int, int] | None:
        """``(pixel_start, pixel_end)`` for a chromosome, or None if absent."""
        i = self.chromosome_index(name)
        if i is None:
            return None
        return int(self.starts[i]), int(self.ends[i])

    def chromosome_length(self, name: str) -> int | None:
        i = self.chromosome_index(name)
        return None if i is None else int(self.lengths[i])

    def pixel_to_chromosome(self, px: float) -> str | None:
        """First chromosome whose span end exceeds ``px``."""
        if px < 0 or px >= self.surface_width or not len(self.names):
            return None
        i = int(np.searchsorted(self.ends, px, side="right"))
        if i >= len(self.names):
            return None
        return self.names[i]

    def bp_to_pixel(self, name: str, bp: float) -> float | None:
        """Interpolate a position within its chromosome's span.

        Returns None for an unknown or zero-length chromosome.
        """
        i = self.chromosome_index(name)
        if i is None or self.lengths[i] <= 0:
            return None
        span_start = float(self.starts[i])
        span_width = float(self.ends[i] - self.starts[i])
        return span_start + (bp / float(self.lengths[i])) * span_width

    def spans(self) -> list[tuple[str, int, int]]:
        return [
            (name, int(s), int(e))
            for name, s, e in zip(self.names, self.starts, self.ends, strict=True)
        ]

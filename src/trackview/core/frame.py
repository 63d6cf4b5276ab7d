"""Coordinate frame: the bp <-> pixel mapping for one visible locus."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..constants import DEFAULT_MINIMUM_BASES, ZOOM_FACTOR


@dataclass(frozen=True)
class CoordinateFrame:
    """An immutable genomic interval scale.

    Navigation returns a new frame, so a captured reference stays a valid
    snapshot of the view at capture time.
    """

    chromosome: str
    start: float
    bp_per_pixel: float

    def __post_init__(self) -> None:
        if self.bp_per_pixel <= 0:
            raise ValueError(f"bp_per_pixel must be positive, got {self.bp_per_pixel}")

    @classmethod
    def for_interval(
        cls, chromosome: str, start: float, end: float, pixel_width: float
    ) -> "CoordinateFrame":
        """Frame showing ``[start, end)`` across ``pixel_width`` pixels."""
        if pixel_width <= 0:
            raise ValueError(f"pixel_width must be positive, got {pixel_width}")
        return cls(chromosome, start, (end - start) / pixel_width)

    def pixel_to_bp(self, px: float) -> float:
        return self.start + px * self.bp_per_pixel

    def bp_to_pixel(self, bp: float) -> float:
        return (bp - self.start) / self.bp_per_pixel

    def width_in_bp(self, pixel_width: float) -> float:
        return pixel_width * self.bp_per_pixel

    def end(self, pixel_width: float) -> float:
        return self.start + self.width_in_bp(pixel_width)

    # -- Navigation (each returns a new frame) --------------------------------

    def shift(self, pixels: float) -> "CoordinateFrame":
        """Pan by ``pixels``; positive moves the view right along the genome."""
        return replace(self, start=self.start + pixels * self.bp_per_pixel)

    def zoom(
        self,
        factor: float,
        pixel_width: float,
        minimum_bases: int = DEFAULT_MINIMUM_BASES,
    ) -> "CoordinateFrame":
        """Scale the view about its centre by ``factor`` (>1 zooms in).

        The visible width never drops below ``minimum_bases``.
        """
        center = self.pixel_to_bp(pixel_width / 2)
        width_bp = max(self.width_in_bp(pixel_width) / factor, minimum_bases)
        bp_per_pixel = width_bp / pixel_width
        return CoordinateFrame(self.chromosome, center - width_bp / 2, bp_per_pixel)

    def zoom_in(self, pixel_width: float, minimum_bases: int = DEFAULT_MINIMUM_BASES):
        return self.zoom(ZOOM_FACTOR, pixel_width, minimum_bases)

    def zoom_out(self, pixel_width: float, minimum_bases: int = DEFAULT_MINIMUM_BASES):
        return self.zoom(1 / ZOOM_FACTOR, pixel_width, minimum_bases)

    def center_on(self, bp: float, pixel_width: float) -> "CoordinateFrame":
        return replace(self, start=bp - self.width_in_bp(pixel_width) / 2)

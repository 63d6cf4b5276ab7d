"""The contract every visual track satisfies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..constants import DISPLAY_MODE_LABELS
from ..core.frame import CoordinateFrame
from ..core.wholegenome import WholeGenomeTable
from ..render.surface import Surface

# What a track is drawn against: one locus frame or the whole-genome axis
RenderContext = Union[CoordinateFrame, WholeGenomeTable]


class DisplayMode(str, Enum):
    """Vertical density, ordered from least to most space."""

    COLLAPSED = "COLLAPSED"
    SQUISHED = "SQUISHED"
    EXPANDED = "EXPANDED"

    @classmethod
    def parse(cls, value: "str | DisplayMode") -> "DisplayMode":
        try:
            return cls(value.upper() if isinstance(value, str) else value)
        except ValueError as e:
            raise ValueError(
                f"Unknown display mode '{value}'. Expected one of {[m.value for m in cls]}"
            ) from e

    @property
    def label(self) -> str:
        return DISPLAY_MODE_LABELS[self.value]


@dataclass(frozen=True)
class PixelBounds:
    """The rectangle of the surface a track owns."""

    x: float
    y: float
    width: float
    height: float

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height


class Track(ABC):
    """A horizontal band of the browser.

    Implementations must draw only inside the bounds they are given, must not
    raise when drawing an empty feature list, and must answer hit-tests with
    an empty list rather than an error.
    """

    name: str
    display_mode: DisplayMode

    @abstractmethod
    def required_height(self, features: Sequence[Any], display_mode: DisplayMode) -> float:
        """Pixels needed for ``features`` in ``display_mode``.

        Must not decrease from COLLAPSED to SQUISHED to EXPANDED.
        """

    @abstractmethod
    def draw(
        self,
        surface: Surface,
        context: RenderContext,
        features: Sequence[Any],
        bounds: PixelBounds,
    ) -> None:
        """Paint ``features`` into ``bounds``."""

    @abstractmethod
    def hit_test(self, x: float, y: float, context: RenderContext) -> list[tuple[str, Any]]:
        """Ordered ``(field, value)`` pairs for the feature under a point."""

    async def load(self, intervals: Sequence[tuple[str, int, int]]) -> list[list[Any]]:
        """Fetch features for each interval. Tracks without a source have none."""
        return [[] for _ in intervals]

    def resident(self, chromosome: str, start: int, end: int) -> list[Any]:
        """Features already in memory for an interval."""
        return []

    def menu_items(self) -> list[dict]:
        """Entries for a track menu collaborator. None by default."""
        return []

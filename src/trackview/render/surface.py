"""Drawing surfaces that tracks paint onto."""

from __future__ import annotations

import io
import math
from typing import Protocol, runtime_checkable

from PIL import Image, ImageDraw

from ..constants import BACKGROUND_COLOR


@runtime_checkable
class Surface(Protocol):
    """The three primitives a track may use, with standard pixel semantics."""

    width: int
    height: int

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None: ...

    def stroke_line(self, x1: float, y1: float, x2: float, y2: float, color: str) -> None: ...

    def fill_text(self, text: str, x: float, y: float, color: str) -> None: ...


class PillowSurface:
    """A raster surface backed by a Pillow RGB image.

    Colours are CSS-style strings (``"rgb(34, 12, 253)"``, ``"#ffffff"``,
    ``"white"``) as understood by ``PIL.ImageColor``.
    """

    def __init__(self, width: int, height: int, background: str = BACKGROUND_COLOR):
        if width < 1 or height < 1:
            raise ValueError(f"Surface must be at least 1x1, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.image = Image.new("RGB", (self.width, self.height), background)
        self._draw = ImageDraw.Draw(self.image)

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None:
        # Pillow rectangles are inclusive of both corners
        x0, y0 = math.floor(x), math.floor(y)
        x1, y1 = math.ceil(x + width) - 1, math.ceil(y + height) - 1
        if x1 < x0 or y1 < y0:
            return
        self._draw.rectangle((x0, y0, x1, y1), fill=color)

    def stroke_line(self, x1: float, y1: float, x2: float, y2: float, color: str) -> None:
        self._draw.line((round(x1), round(y1), round(x2), round(y2)), fill=color, width=1)

    def fill_text(self, text: str, x: float, y: float, color: str) -> None:
        self._draw.text((round(x), round(y)), text, fill=color)

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        return self.image.getpixel((x, y))  # type: ignore[return-value]

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()

"""Variant track: per-variant bars with genotype-coloured call rows beneath."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from typing import Any

from ..config import TrackViewConfig
from ..constants import (
    BACKGROUND_COLOR,
    BAND_DIVIDER_COLOR,
    DEFAULT_EXPANDED_CALL_HEIGHT,
    DEFAULT_SQUISHED_CALL_HEIGHT,
    DEFAULT_TRACK_COLOR,
    DEFAULT_VARIANT_HEIGHT,
    DEFAULT_VISIBILITY_WINDOW,
    HETVAR_COLOR,
    HIT_TOLERANCE_PIXELS,
    HOMREF_COLOR,
    HOMVAR_COLOR,
    VISIBILITY_COMPUTE,
    WHOLE_GENOME_EXPANDED_CALL_HEIGHT,
    WHOLE_GENOME_SQUISHED_CALL_HEIGHT,
)
from ..core.features import (
    CallSet,
    FeatureCache,
    FeatureSource,
    FileHeader,
    HeaderProvider,
    Variant,
)
from ..core.frame import CoordinateFrame
from ..core.wholegenome import WholeGenomeTable
from ..errors import FeatureSourceError
from ..reference import normalize_chromosome_name
from ..render.surface import Surface
from .base import DisplayMode, PixelBounds, RenderContext, Track
from .layout import VariantLayout, compute_layout, compute_visibility_window, normalize_bar
from .popup import (
    SEPARATOR,
    GenotypeClass,
    PopupField,
    call_fields,
    classify_genotype,
    variant_fields,
)

logger = logging.getLogger(__name__)


def _css_color(color: str) -> str:
    """Track-line colours arrive as ``"r,g,b"``; wrap them for the surface."""
    if color and color[0].isdigit():
        return f"rgb({color})"
    return color


def _variant_key(f: Variant) -> tuple:
    return (
        normalize_chromosome_name(f.reference_name),
        f.start,
        f.end,
        f.reference_bases,
        tuple(f.alternate_bases),
    )


class VariantTrack(Track):
    """Renders variants and, outside COLLAPSED mode, one row per call-set.

    Features shown by ``draw`` are also kept in ``cache`` so that a later
    hit-test can be answered from memory without touching the source.
    """

    def __init__(
        self,
        source: FeatureSource,
        name: str | None = None,
        color: str | None = None,
        display_mode: DisplayMode | str = DisplayMode.COLLAPSED,
        visibility_window: int | str = VISIBILITY_COMPUTE,
        variant_height: float = DEFAULT_VARIANT_HEIGHT,
        squished_call_height: float | None = None,
        expanded_call_height: float | None = None,
        whole_genome: bool = False,
        call_sets: Sequence[CallSet] | None = None,
        homref_color: str = HOMREF_COLOR,
        homvar_color: str = HOMVAR_COLOR,
        hetvar_color: str = HETVAR_COLOR,
    ):
        self.source = source
        self.cache = FeatureCache()
        self._configured_name = name
        self._configured_color = color
        self.name = name or "Variants"
        self.color = color or DEFAULT_TRACK_COLOR
        self.display_mode = DisplayMode.parse(display_mode)
        self.variant_height = variant_height
        if whole_genome:
            self.squished_call_height = squished_call_height or WHOLE_GENOME_SQUISHED_CALL_HEIGHT
            self.expanded_call_height = expanded_call_height or WHOLE_GENOME_EXPANDED_CALL_HEIGHT
        else:
            self.squished_call_height = squished_call_height or DEFAULT_SQUISHED_CALL_HEIGHT
            self.expanded_call_height = expanded_call_height or DEFAULT_EXPANDED_CALL_HEIGHT
        self.call_sets: list[CallSet] = list(call_sets or [])
        self.genotype_colors = {
            GenotypeClass.HOMREF: homref_color,
            GenotypeClass.HOMVAR: homvar_color,
            GenotypeClass.HET: hetvar_color,
        }

        self._visibility_setting = visibility_window
        if visibility_window == VISIBILITY_COMPUTE:
            self.visibility_window: float = (
                compute_visibility_window(self.call_sets)
                if self.call_sets
                else DEFAULT_VISIBILITY_WINDOW
            )
        else:
            self.visibility_window = float(visibility_window)

        self._layout: VariantLayout | None = None

    @classmethod
    def from_config(
        cls,
        source: FeatureSource,
        config: TrackViewConfig,
        name: str | None = None,
        whole_genome: bool = False,
    ) -> "VariantTrack":
        return cls(
            source,
            name=name,
            display_mode=config.display_mode,
            visibility_window=config.visibility_window,
            whole_genome=whole_genome,
        )

    def __repr__(self) -> str:
        return f"VariantTrack(name={self.name!r}, display_mode={self.display_mode.value})"

    # -- Data ----------------------------------------------------------------

    async def load_header(self) -> FileHeader | None:
        """Apply the source's header, if the source can provide one.

        Name and colour from the header never override configured values.
        """
        header = None
        if isinstance(self.source, HeaderProvider):
            try:
                header = await self.source.get_file_header()
            except FeatureSourceError:
                raise
            except Exception as e:
                raise FeatureSourceError(str(e)) from e

        if header is not None:
            if header.name and not self._configured_name:
                self.name = header.name
            if header.color and not self._configured_color:
                self.color = _css_color(header.color)
            if header.call_sets is not None:
                self.call_sets = list(header.call_sets)
            self._layout = None

        if self._visibility_setting == VISIBILITY_COMPUTE:
            self.visibility_window = compute_visibility_window(self.call_sets)
        return header

    async def get_features(self, chromosome: str, start: int, end: int) -> list[Variant]:
        """Fetch from the source unless the interval exceeds the visibility window.

        Raises:
            FeatureSourceError: If the source fails; other exceptions are wrapped.
        """
        if end - start > self.visibility_window:
            logger.debug(
                "%s: %s:%d-%d exceeds visibility window %.0f",
                self.name,
                chromosome,
                start,
                end,
                self.visibility_window,
            )
            return []
        try:
            return await self.source.get_features(chromosome, start, end)
        except FeatureSourceError:
            raise
        except Exception as e:
            raise FeatureSourceError(str(e)) from e

    async def load(
        self, intervals: Sequence[tuple[str, int, int]]
    ) -> list[list[Variant]]:
        """Fetch each interval and make the result resident for hit-tests.

        Returns the features per interval, in order.
        """
        fetched = [await self.get_features(chrom, start, end) for chrom, start, end in intervals]

        # overlapping intervals return copies of one variant; keep the first so
        # every panel draws and hit-tests the same row
        resident: dict[tuple, Variant] = {}
        for features in fetched:
            for f in features:
                resident.setdefault(_variant_key(f), f)
        results = [[resident[_variant_key(f)] for f in features] for features in fetched]

        by_chrom: dict[str, list[Variant]] = {
            normalize_chromosome_name(chrom): [] for chrom, _, _ in intervals
        }
        for key, f in resident.items():
            by_chrom.setdefault(key[0], []).append(f)
        for chrom, features in by_chrom.items():
            self.cache.replace(chrom, features)

        self._layout = None
        return results

    def resident(self, chromosome: str, start: int, end: int) -> list[Variant]:
        return self.cache.query(chromosome, start, end)

    # -- Layout --------------------------------------------------------------

    def set_display_mode(self, display_mode: DisplayMode | str) -> None:
        """Switch density; callers must re-query the height and redraw."""
        self.display_mode = DisplayMode.parse(display_mode)
        self._layout = None

    def layout_for(
        self, features: Sequence[Variant], display_mode: DisplayMode | None = None
    ) -> VariantLayout:
        return compute_layout(
            features,
            display_mode or self.display_mode,
            len(self.call_sets),
            self.variant_height,
            self.squished_call_height,
            self.expanded_call_height,
        )

    @property
    def layout(self) -> VariantLayout:
        """Layout last used to draw, or one over the resident features."""
        if self._layout is None:
            self._layout = self.layout_for(self.cache.all_features())
        return self._layout

    def required_height(
        self, features: Sequence[Variant], display_mode: DisplayMode | None = None
    ) -> float:
        mode = display_mode or self.display_mode
        layout = self.layout_for(features, mode)
        if mode is self.display_mode:
            self._layout = layout
        return layout.required_height

    def menu_items(self) -> list[dict]:
        return [
            {"mode": mode.value, "label": mode.label, "selected": mode is self.display_mode}
            for mode in DisplayMode
        ]

    # -- Drawing -------------------------------------------------------------

    def _fill(
        self,
        surface: Surface,
        bounds: PixelBounds,
        x: float,
        y: float,
        width: float,
        height: float,
        color: str,
    ) -> None:
        """Fill a track-local rectangle clipped to ``bounds``."""
        x0, x1 = max(x, 0), min(x + width, bounds.width)
        y0, y1 = max(y, 0), min(y + height, bounds.height)
        if x1 <= x0 or y1 <= y0:
            return
        surface.fill_rect(bounds.x + x0, bounds.y + y0, x1 - x0, y1 - y0, color)

    def _locus_bars(
        self, frame: CoordinateFrame, features: Sequence[Variant]
    ) -> Iterable[tuple[Variant, float, float]]:
        chrom = normalize_chromosome_name(frame.chromosome)
        for variant in features:
            if normalize_chromosome_name(variant.reference_name) != chrom:
                continue
            px = math.floor((variant.start - frame.start) / frame.bp_per_pixel)
            px1 = math.floor((variant.end - frame.start) / frame.bp_per_pixel)
            yield (variant, *normalize_bar(px, max(1, px1 - px)))

    def _whole_genome_bars(
        self, table: WholeGenomeTable, features: Sequence[Variant]
    ) -> Iterable[tuple[Variant, float, float]]:
        for variant in features:
            px = table.bp_to_pixel(variant.reference_name, variant.start)
            px1 = table.bp_to_pixel(variant.reference_name, variant.end)
            if px is None or px1 is None:
                continue
            yield (variant, *normalize_bar(px, max(1, px1 - px)))

    def draw(
        self,
        surface: Surface,
        context: RenderContext,
        features: Sequence[Variant],
        bounds: PixelBounds,
    ) -> None:
        layout = self.layout_for(features)
        self._layout = layout

        surface.fill_rect(bounds.x, bounds.y, bounds.width, bounds.height, BACKGROUND_COLOR)

        if layout.show_calls and layout.variant_band_height < bounds.height:
            y = bounds.y + layout.variant_band_height
            surface.stroke_line(bounds.x, y, bounds.x + bounds.width - 1, y, BAND_DIVIDER_COLOR)

        if isinstance(context, WholeGenomeTable):
            bars = self._whole_genome_bars(context, features)
        else:
            bars = self._locus_bars(context, features)

        for variant, px, pw in bars:
            if px + pw < 0 or px >= bounds.width:
                continue
            self._fill(
                surface,
                bounds,
                px,
                layout.variant_y(variant.row),
                pw,
                layout.variant_height,
                self.color,
            )

            if not layout.show_calls or not variant.calls:
                continue
            for j, call_set in enumerate(self.call_sets):
                call = variant.calls.get(call_set.id)
                if call is None:
                    continue
                self._fill(
                    surface,
                    bounds,
                    px,
                    layout.call_y(j, variant.row),
                    pw,
                    layout.call_height,
                    self.genotype_colors[classify_genotype(call.genotype)],
                )

    # -- Hit testing ---------------------------------------------------------

    def _locus_candidates(self, x: float, frame: CoordinateFrame) -> list[Variant]:
        location = frame.pixel_to_bp(x)
        tolerance = HIT_TOLERANCE_PIXELS * frame.bp_per_pixel
        return self.cache.query(frame.chromosome, location - tolerance, location + tolerance)

    def _whole_genome_candidates(self, x: float, table: WholeGenomeTable) -> list[Variant]:
        chrom = table.pixel_to_chromosome(x)
        if chrom is None:
            return []
        matches = []
        for variant in self.cache.features_for(chrom):
            px = table.bp_to_pixel(chrom, variant.start)
            px1 = table.bp_to_pixel(chrom, variant.end)
            if px is None or px1 is None:
                continue
            if px <= x + HIT_TOLERANCE_PIXELS and px1 > x - HIT_TOLERANCE_PIXELS:
                matches.append(variant)
        return matches

    def _fields_for(self, variant: Variant, y: float, layout: VariantLayout) -> list[PopupField]:
        if layout.display_mode is DisplayMode.COLLAPSED:
            return variant_fields(variant, self.call_sets)

        if y <= layout.variant_band_height:
            if variant.row == layout.variant_row_at(y):
                return variant_fields(variant, self.call_sets)
            return []

        if not self.call_sets or not variant.calls:
            return []
        index = layout.call_slot_at(y) - variant.row
        if not 0 <= index < len(self.call_sets):
            return []
        call = variant.calls.get(self.call_sets[index].id)
        return call_fields(call, variant) if call is not None else []

    def hit_test(self, x: float, y: float, context: RenderContext) -> list[tuple[str, Any]]:
        """Fields for the features under a track-local point.

        Only resident features are considered. Each matching feature after
        the first is preceded by ``SEPARATOR``.
        """
        if isinstance(context, WholeGenomeTable):
            candidates = self._whole_genome_candidates(x, context)
        else:
            candidates = self._locus_candidates(x, context)

        layout = self.layout
        result: list[tuple[str, Any]] = []
        for variant in candidates:
            fields = self._fields_for(variant, y, layout)
            if not fields:
                continue
            if result:
                result.append(SEPARATOR)
            result.extend(fields)
        return result

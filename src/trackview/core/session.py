"""Browser session: locus panels, their frames and the tracks drawn across them."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from ..config import TrackViewConfig
from ..constants import DEFAULT_FLANKING, DEFAULT_MINIMUM_BASES
from ..errors import FeatureSourceError
from ..reference import Genome, load_genome
from ..render.surface import PillowSurface, Surface
from .frame import CoordinateFrame
from .locus import GenomicStateSlot, LocusResolver, build_layout, is_whole_genome_layout
from .wholegenome import WholeGenomeTable

if TYPE_CHECKING:
    from ..tracks.base import PixelBounds, RenderContext, Track

logger = logging.getLogger(__name__)


class BrowserSession:
    """Explicit owner of everything one browser view needs.

    Slots are held in a tuple that is replaced, never edited, on navigation.
    The whole-genome table is rebuilt wholesale when the slot width changes.
    """

    def __init__(
        self,
        genome: Genome,
        width: int,
        resolver: LocusResolver | None = None,
        flanking: int = DEFAULT_FLANKING,
        minimum_bases: int = DEFAULT_MINIMUM_BASES,
    ):
        self.genome = genome
        self.width = width
        self.resolver = resolver
        self.flanking = flanking
        self.minimum_bases = minimum_bases
        self.slots: tuple[GenomicStateSlot, ...] = ()
        self.unresolved: list[str] = []
        self.tracks: list[Track] = []
        self._table: WholeGenomeTable | None = None
        # features[track_index][slot_index], as last loaded
        self._features: list[list[list[Any]]] = []

    @classmethod
    def from_config(
        cls, config: TrackViewConfig, resolver: LocusResolver | None = None
    ) -> "BrowserSession":
        """Create a session for the configured reference.

        Raises:
            MissingReference: If no reference genome is configured.
        """
        return cls(
            load_genome(config),
            config.viewport_width,
            resolver=resolver,
            flanking=config.flanking,
            minimum_bases=config.minimum_bases,
        )

    # -- Loci ----------------------------------------------------------------

    @property
    def whole_genome_mode(self) -> bool:
        return is_whole_genome_layout(self.slots)

    @property
    def zoom_enabled(self) -> bool:
        return bool(self.slots) and not self.whole_genome_mode

    async def open_loci(self, queries: Sequence[str] | str | None) -> list[str]:
        """Replace the session's panels with the given loci.

        A whitespace separated string is split into several loci.
        No loci means the first chromosome. Returns the queries that did not
        resolve.

        Raises:
            LocusNotFound: If none of the queries resolve.
        """
        if isinstance(queries, str):
            queries = queries.split()
        queries = [q for q in (queries or []) if q.strip()]
        if not queries:
            queries = [self.genome.chromosome_names[0]]

        slots, unresolved = await build_layout(
            queries,
            self.genome,
            self.width,
            self.resolver,
            self.flanking,
            self.minimum_bases,
        )
        self.slots = tuple(slots)
        self.unresolved = unresolved
        self._features = [[[] for _ in self.slots] for _ in self.tracks]
        logger.info(
            "Opened %d locus panel(s): %s",
            len(self.slots),
            ", ".join(s.search_string for s in self.slots),
        )
        return unresolved

    def whole_genome_table(self, width: float | None = None) -> WholeGenomeTable:
        """The cached table for ``width`` (default: the first slot's width)."""
        if width is None:
            width = self.slots[0].pixel_width if self.slots else self.width
        width = int(width)
        if self._table is None or self._table.surface_width != width:
            self._table = WholeGenomeTable(self.genome.whole_genome_lengths(), width)
            logger.debug("Rebuilt %r", self._table)
        return self._table

    def context_for(self, slot: GenomicStateSlot) -> RenderContext:
        if slot.is_whole_genome:
            return self.whole_genome_table(slot.pixel_width)
        return slot.current_frame

    def resize(self, width: int) -> None:
        """Change the viewport width, keeping every panel's bp interval."""
        if width < 1:
            raise ValueError(f"width must be at least 1, got {width}")
        old_slots = self.slots
        self.width = width
        if not old_slots:
            return

        slot_width = width / len(old_slots)
        new_slots = []
        for slot in old_slots:
            frame = slot.current_frame
            current = CoordinateFrame.for_interval(
                frame.chromosome, frame.start, frame.end(slot.pixel_width), slot_width
            )
            initial = CoordinateFrame.for_interval(slot.chromosome, slot.start, slot.end, slot_width)
            new_slots.append(
                replace(slot, current_frame=current, initial_frame=initial, pixel_width=slot_width)
            )
        self.slots = tuple(new_slots)

    # -- Navigation ----------------------------------------------------------

    def _clamp(self, frame: CoordinateFrame, slot: GenomicStateSlot) -> CoordinateFrame:
        chrom = self.genome.get_chromosome(frame.chromosome)
        if chrom is None:
            return frame
        length = chrom[1]
        width_bp = frame.width_in_bp(slot.pixel_width)
        if width_bp >= length:
            return CoordinateFrame(frame.chromosome, 0, length / slot.pixel_width)
        start = min(max(0.0, frame.start), length - width_bp)
        return replace(frame, start=start)

    def _replace_frame(self, index: int, frame: CoordinateFrame) -> GenomicStateSlot:
        slot = self.slots[index]
        new_slot = slot.with_frame(self._clamp(frame, slot))
        self.slots = self.slots[:index] + (new_slot,) + self.slots[index + 1 :]
        return new_slot

    def _zoomable(self, index: int) -> bool:
        if not self.zoom_enabled or self.slots[index].is_whole_genome:
            logger.info("Zoom is disabled in whole-genome view")
            return False
        return True

    def zoom_in(self, index: int = 0) -> bool:
        """Halve the visible width of a panel. False when zoom is disabled."""
        if not self._zoomable(index):
            return False
        slot = self.slots[index]
        self._replace_frame(index, slot.current_frame.zoom_in(slot.pixel_width, self.minimum_bases))
        return True

    def zoom_out(self, index: int = 0) -> bool:
        if not self._zoomable(index):
            return False
        slot = self.slots[index]
        self._replace_frame(
            index, slot.current_frame.zoom_out(slot.pixel_width, self.minimum_bases)
        )
        return True

    def pan(self, index: int, pixels: float) -> bool:
        slot = self.slots[index]
        if slot.is_whole_genome:
            return False
        self._replace_frame(index, slot.current_frame.shift(pixels))
        return True

    def reset(self, index: int = 0) -> None:
        slot = self.slots[index]
        self._replace_frame(index, slot.initial_frame)

    # -- Tracks --------------------------------------------------------------

    def add_track(self, track: Track) -> None:
        self.tracks.append(track)
        self._features.append([[] for _ in self.slots])

    def get_track(self, name: str | None) -> Track:
        """Track by name; the most recently added one when ``name`` is None.

        Raises:
            ValueError: If there is no such track.
        """
        if not self.tracks:
            raise ValueError("No tracks loaded")
        if name is None:
            return self.tracks[-1]
        for track in self.tracks:
            if track.name == name:
                return track
        raise ValueError(f"No track named '{name}'")

    def _intervals_for(self, slot: GenomicStateSlot) -> list[tuple[str, int, int]]:
        if slot.is_whole_genome:
            table = self.whole_genome_table(slot.pixel_width)
            return [(name, 0, table.chromosome_length(name) or 0) for name in table.names]
        frame = slot.current_frame
        return [
            (
                frame.chromosome,
                max(0, math.floor(frame.start)),
                math.ceil(frame.end(slot.pixel_width)),
            )
        ]

    async def load_features(self) -> list[str]:
        """Fetch features for every track and panel; returns error messages.

        A failing track keeps drawing whatever it already has resident.
        """
        errors: list[str] = []
        per_slot = [self._intervals_for(slot) for slot in self.slots]
        intervals = [iv for slot_intervals in per_slot for iv in slot_intervals]
        for t, track in enumerate(self.tracks):
            # one load per track so panels sharing a chromosome share residency
            try:
                loaded = await track.load(intervals)
            except FeatureSourceError as e:
                logger.warning("Track %s failed to load features: %s", track.name, e)
                errors.append(f"{track.name}: {e}")
                loaded = [track.resident(*iv) for iv in intervals]

            offset = 0
            for s, slot_intervals in enumerate(per_slot):
                chunk = loaded[offset : offset + len(slot_intervals)]
                offset += len(slot_intervals)
                self._features[t][s] = [f for features in chunk for f in features]
        return errors

    def features_for(self, track: Track, slot_index: int) -> list[Any]:
        return self._features[self.tracks.index(track)][slot_index]

    def track_height(self, track: Track) -> float:
        t = self.tracks.index(track)
        heights = [
            track.required_height(features, track.display_mode) for features in self._features[t]
        ]
        return max(heights, default=track.required_height([], track.display_mode))

    def track_bounds(self) -> list[tuple[Track, float, float]]:
        """``(track, top, height)`` for each track, stacked top to bottom."""
        result = []
        top = 0.0
        for track in self.tracks:
            height = self.track_height(track)
            result.append((track, top, height))
            top += height
        return result

    # -- Rendering -----------------------------------------------------------

    def render(self, surface: Surface | None = None) -> Surface:
        """Draw every track in every panel; returns the surface."""
        from ..tracks.base import PixelBounds

        stacked = self.track_bounds()
        if surface is None:
            total = max(1, math.ceil(sum(h for _, _, h in stacked)))
            surface = PillowSurface(self.width, total)

        for track, top, height in stacked:
            t = self.tracks.index(track)
            for s, slot in enumerate(self.slots):
                bounds = PixelBounds(s * slot.pixel_width, top, slot.pixel_width, height)
                track.draw(surface, self.context_for(slot), self._features[t][s], bounds)
        return surface

    def locate(self, x: float, y: float) -> tuple[Track, int, PixelBounds] | None:
        """Track, panel index and bounds under a viewport point."""
        from ..tracks.base import PixelBounds

        if not self.slots or x < 0 or x >= self.width:
            return None
        slot_width = self.slots[0].pixel_width
        index = min(int(x // slot_width), len(self.slots) - 1)
        for track, top, height in self.track_bounds():
            bounds = PixelBounds(index * slot_width, top, slot_width, height)
            if bounds.contains(x, y):
                return track, index, bounds
        return None

    def hit_test(self, x: float, y: float) -> tuple[Track | None, list[tuple[str, Any]]]:
        """Popup fields for a viewport point; ``(None, [])`` over empty space."""
        located = self.locate(x, y)
        if located is None:
            return None, []
        track, index, bounds = located
        slot = self.slots[index]
        # panels can pack rows differently; re-establish this panel's layout
        track.required_height(self.features_for(track, index), track.display_mode)
        return track, track.hit_test(x - bounds.x, y - bounds.y, self.context_for(slot))

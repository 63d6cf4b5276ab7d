"""Locus parsing, resolution and the multi-locus panel layout."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Protocol

from ..constants import DEFAULT_FLANKING, DEFAULT_MINIMUM_BASES, WHOLE_GENOME_LOCUS
from ..errors import LocusNotFound
from ..reference import Genome
from .frame import CoordinateFrame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocusInterval:
    """A resolved locus before it is given pixels."""

    chromosome: str
    start: int
    end: int
    search_string: str


@dataclass(frozen=True)
class GenomicStateSlot:
    """One visible locus panel.

    ``current_frame`` is replaced on pan/zoom; ``initial_frame`` is kept for
    reset. Slots are replaced wholesale, never edited in place.
    """

    chromosome: str
    start: int
    end: int
    locus_index: int
    locus_count: int
    current_frame: CoordinateFrame
    initial_frame: CoordinateFrame
    search_string: str
    pixel_width: float

    @property
    def is_whole_genome(self) -> bool:
        return self.search_string == WHOLE_GENOME_LOCUS

    def with_frame(self, frame: CoordinateFrame) -> "GenomicStateSlot":
        return replace(self, current_frame=frame)


class LocusResolver(Protocol):
    """Resolves a feature or gene name to an interval (may perform I/O)."""

    async def resolve(self, name: str) -> LocusInterval | None: ...


def parse_locus(locus: str) -> tuple[str, int | None, int | None]:
    """
    Parse a locus string into chromosome, start, end.

    Supports formats:
        - chr1:1000-2000 (start inclusive, end exclusive)
        - chr1:1,000-2,000
        - chr1:1500 (single base, i.e. 1500-1501)
        - chr1 (whole chromosome; start and end are None)

    Raises:
        ValueError: If the coordinate part is malformed.
    """
    locus = locus.strip().replace(",", "")
    if ":" not in locus:
        return locus, None, None

    chromosome, coords = locus.rsplit(":", 1)
    try:
        if "-" in coords:
            start_str, end_str = coords.split("-", 1)
            start, end = int(start_str), int(end_str)
        else:
            start = int(coords)
            end = start + 1
    except ValueError as e:
        raise ValueError(
            f"Invalid locus format: '{locus}'. Expected format: 'chr1:1000-2000'"
        ) from e

    if start < 0:
        raise ValueError(f"Start position must be non-negative, got {start}")
    if end <= start:
        raise ValueError(f"End position ({end}) must be greater than start ({start})")

    return chromosome, start, end


def _widen(interval: LocusInterval, minimum_bases: int, chrom_length: int) -> LocusInterval:
    """Widen an interval narrower than ``minimum_bases`` about its centre."""
    if interval.end - interval.start >= minimum_bases:
        return interval
    center = (interval.start + interval.end) / 2
    start = max(0, int(center - minimum_bases / 2))
    end = min(chrom_length, start + minimum_bases)
    # pinned to the chromosome end; keep the width by moving left
    start = max(0, end - minimum_bases)
    return replace(interval, start=start, end=end)


def _resolve_coordinates(query: str, genome: Genome) -> LocusInterval | None:
    try:
        name, start, end = parse_locus(query)
    except ValueError:
        logger.debug("Locus %r is not coordinate syntax", query)
        return None

    chrom = genome.get_chromosome(name)
    if chrom is None:
        return None
    canonical, length = chrom
    if start is None or end is None:
        return LocusInterval(canonical, 0, length, query)
    if start >= length:
        logger.debug("Locus %r starts beyond %s (%d bp)", query, canonical, length)
        return None
    return LocusInterval(canonical, start, min(length, end), query)


async def resolve_loci(
    queries: Sequence[str],
    genome: Genome,
    resolver: LocusResolver | None = None,
    flanking: int = DEFAULT_FLANKING,
    minimum_bases: int = DEFAULT_MINIMUM_BASES,
) -> tuple[list[LocusInterval], list[str]]:
    """Resolve each query; returns ``(resolved, unresolved_queries)``.

    ``all`` resolves to the whole genome. Coordinates and bare chromosome
    names resolve against the genome. Anything else goes to ``resolver``
    and gains ``flanking`` bp on each side.
    """
    resolved: list[LocusInterval] = []
    unresolved: list[str] = []
    total_bp = sum(length for _, length in genome.whole_genome_lengths())

    for raw in queries:
        query = raw.strip().lower()
        if not query:
            continue

        if query == WHOLE_GENOME_LOCUS:
            resolved.append(LocusInterval(WHOLE_GENOME_LOCUS, 0, total_bp, query))
            continue

        interval = _resolve_coordinates(query, genome)

        if interval is None and resolver is not None:
            found = await resolver.resolve(query)
            chrom = genome.get_chromosome(found.chromosome) if found else None
            if found is not None and chrom is not None:
                canonical, length = chrom
                interval = LocusInterval(
                    canonical,
                    max(0, found.start - flanking),
                    min(length, found.end + flanking),
                    query,
                )

        if interval is None or interval.start >= interval.end:
            logger.warning("Could not resolve locus %r", query)
            unresolved.append(raw)
            continue

        chrom_length = genome.get_chromosome(interval.chromosome)[1]  # type: ignore[index]
        resolved.append(_widen(interval, minimum_bases, chrom_length))

    return resolved, unresolved


def layout_slots(intervals: Sequence[LocusInterval], width: float) -> list[GenomicStateSlot]:
    """Give each resolved locus ``width / count`` pixels and build its frames.

    Raises:
        ValueError: If there are no intervals or width is not positive.
    """
    if not intervals:
        raise ValueError("At least one resolved locus is required")
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")

    count = len(intervals)
    slot_width = width / count
    slots = []
    for index, interval in enumerate(intervals):
        frame = CoordinateFrame.for_interval(
            interval.chromosome, interval.start, interval.end, slot_width
        )
        slots.append(
            GenomicStateSlot(
                chromosome=interval.chromosome,
                start=interval.start,
                end=interval.end,
                locus_index=index,
                locus_count=count,
                current_frame=frame,
                initial_frame=CoordinateFrame.for_interval(
                    interval.chromosome, interval.start, interval.end, slot_width
                ),
                search_string=interval.search_string,
                pixel_width=slot_width,
            )
        )
    return slots


async def build_layout(
    queries: Sequence[str],
    genome: Genome,
    width: float,
    resolver: LocusResolver | None = None,
    flanking: int = DEFAULT_FLANKING,
    minimum_bases: int = DEFAULT_MINIMUM_BASES,
) -> tuple[list[GenomicStateSlot], list[str]]:
    """Resolve ``queries`` and lay them out across ``width`` pixels.

    Unresolved loci are dropped, and the index/count of the remaining slots
    stay contiguous.

    Raises:
        LocusNotFound: If no query resolves.
    """
    intervals, unresolved = await resolve_loci(queries, genome, resolver, flanking, minimum_bases)
    if not intervals:
        raise LocusNotFound(unresolved or list(queries))
    return layout_slots(intervals, width), unresolved


def is_whole_genome_layout(slots: Sequence[GenomicStateSlot]) -> bool:
    """True when a single slot shows the ``all`` sentinel; zoom is then disabled."""
    return len(slots) == 1 and slots[0].is_whole_genome

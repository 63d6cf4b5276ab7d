"""Variant feature model, feature-source capabilities and the resident cache."""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..reference import normalize_chromosome_name


@dataclass
class Call:
    """A genotype call for one call-set at one variant."""

    genotype: list[int]
    info: dict[str, Any] = field(default_factory=dict)
    call_set_name: str | None = None
    phaseset: str | None = None
    genotype_likelihood: list[float] | None = None


@dataclass(frozen=True)
class CallSet:
    """A sample contributing genotype calls. Order defines row order."""

    id: str
    name: str


@dataclass
class Variant:
    """A variant record with per-call-set genotype calls.

    ``start`` is 0-based inclusive and ``end`` exclusive. ``row`` is assigned
    by the upstream feature layout.
    """

    reference_name: str
    start: int
    end: int
    reference_bases: str
    alternate_bases: list[str] = field(default_factory=list)
    calls: dict[str, Call] = field(default_factory=dict)
    info: dict[str, Any] = field(default_factory=dict)
    gene: str | None = None
    protein_change: str | None = None
    row: int = 0

    @property
    def alleles(self) -> list[str]:
        return [self.reference_bases, *self.alternate_bases]


@dataclass
class FileHeader:
    """Track metadata a source may supply."""

    name: str | None = None
    color: str | None = None
    call_sets: list[CallSet] | None = None


@runtime_checkable
class FeatureSource(Protocol):
    """Supplies variants for an interval. May perform I/O."""

    async def get_features(self, chromosome: str, start: int, end: int) -> list[Variant]: ...


@runtime_checkable
class HeaderProvider(Protocol):
    """Optional capability: a source that can describe its track."""

    async def get_file_header(self) -> FileHeader | None: ...


def assign_rows(features: Sequence[Variant]) -> int:
    """Greedy row packing; returns the number of rows used.

    Each feature takes the first row whose last feature ended before it
    starts. Features are processed in start order.
    """
    row_ends: list[int] = []
    for feature in sorted(features, key=lambda f: (f.start, f.end)):
        for row, last_end in enumerate(row_ends):
            if last_end <= feature.start:
                feature.row = row
                row_ends[row] = feature.end
                break
        else:
            feature.row = len(row_ends)
            row_ends.append(feature.end)
    return len(row_ends)


class FeatureCache:
    """In-memory features keyed by chromosome, queried without I/O.

    Each chromosome holds its features sorted by start. The longest feature
    seen bounds how far left of the query an overlapping feature can start.
    """

    def __init__(self, features: Iterable[Variant] = ()):
        self._by_chrom: dict[str, list[Variant]] = {}
        self._starts: dict[str, list[int]] = {}
        self._max_length: dict[str, int] = {}
        self.add(features)

    def add(self, features: Iterable[Variant]) -> None:
        touched: set[str] = set()
        for feature in features:
            key = normalize_chromosome_name(feature.reference_name)
            self._by_chrom.setdefault(key, []).append(feature)
            self._max_length[key] = max(
                self._max_length.get(key, 0), feature.end - feature.start
            )
            touched.add(key)
        for key in touched:
            self._by_chrom[key].sort(key=lambda f: (f.start, f.end))
            self._starts[key] = [f.start for f in self._by_chrom[key]]

    def replace(self, chromosome: str, features: Iterable[Variant]) -> None:
        """Drop everything cached for ``chromosome`` and store ``features``."""
        key = normalize_chromosome_name(chromosome)
        self._by_chrom.pop(key, None)
        self._starts.pop(key, None)
        self._max_length.pop(key, None)
        self.add(features)

    def clear(self) -> None:
        self._by_chrom.clear()
        self._starts.clear()
        self._max_length.clear()

    def query(self, chromosome: str, start: float, end: float) -> list[Variant]:
        """Features on ``chromosome`` overlapping the closed range [start, end]."""
        key = normalize_chromosome_name(chromosome)
        features = self._by_chrom.get(key)
        if not features:
            return []
        starts = self._starts[key]
        lo = bisect.bisect_left(starts, start - self._max_length[key])
        hi = bisect.bisect_right(starts, end)
        return [f for f in features[lo:hi] if f.end >= start]

    def features_for(self, chromosome: str) -> list[Variant]:
        return list(self._by_chrom.get(normalize_chromosome_name(chromosome), []))

    def all_features(self) -> list[Variant]:
        return [f for features in self._by_chrom.values() for f in features]

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_chrom.values())


class InMemoryFeatureSource:
    """A feature source over a fixed list, optionally with a header."""

    def __init__(self, features: Iterable[Variant], header: FileHeader | None = None):
        self._cache = FeatureCache(features)
        self._header = header

    async def get_features(self, chromosome: str, start: int, end: int) -> list[Variant]:
        return self._cache.query(chromosome, start, end)

    async def get_file_header(self) -> FileHeader | None:
        return self._header

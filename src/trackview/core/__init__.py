"""Core coordinate, locus and session modules."""

from .features import (
    Call,
    CallSet,
    FeatureCache,
    FeatureSource,
    FileHeader,
    HeaderProvider,
    InMemoryFeatureSource,
    Variant,
    assign_rows,
)
from .frame import CoordinateFrame
from .locus import (
    GenomicStateSlot,
    LocusInterval,
    LocusResolver,
    build_layout,
    parse_locus,
    resolve_loci,
)
from .session import BrowserSession
from .wholegenome import WholeGenomeTable

__all__ = [
    "BrowserSession",
    "Call",
    "CallSet",
    "CoordinateFrame",
    "FeatureCache",
    "FeatureSource",
    "FileHeader",
    "GenomicStateSlot",
    "HeaderProvider",
    "InMemoryFeatureSource",
    "LocusInterval",
    "LocusResolver",
    "Variant",
    "WholeGenomeTable",
    "assign_rows",
    "build_layout",
    "parse_locus",
    "resolve_loci",
]

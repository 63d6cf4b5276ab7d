"""Exception taxonomy for trackview.

Hit-tests never raise; absence of a match is an empty result. These errors
cover session setup and data retrieval only.
"""

from __future__ import annotations

from collections.abc import Sequence


class TrackViewError(Exception):
    """Base class for trackview errors surfaced to the user."""


class LocusNotFound(TrackViewError):
    """One or more locus queries could not be resolved to an interval."""

    def __init__(self, queries: Sequence[str]):
        self.queries = list(queries)
        super().__init__(f"Unrecognized locus {', '.join(self.queries)}")


class MissingReference(TrackViewError):
    """No usable reference genome is configured."""


class FeatureSourceError(TrackViewError):
    """A feature source failed to deliver features or a header."""

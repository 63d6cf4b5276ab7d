"""Shared constants for trackview runtime defaults and layout thresholds.

This module is the single source of truth for default values that are consumed
across configuration loading, track layout, drawing and hit-testing.
"""

from __future__ import annotations

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_TRANSPORT = "stdio"
VALID_TRANSPORTS = ("stdio", "sse", "streamable-http")
DEFAULT_LOG_LEVEL = "INFO"

# Session defaults
DEFAULT_VIEWPORT_WIDTH = 1000
DEFAULT_FLANKING = 1_000
DEFAULT_MINIMUM_BASES = 40
WHOLE_GENOME_LOCUS = "all"
ZOOM_FACTOR = 2.0

# Track layout (pixels)
VARIANT_BAND_TOP = 10
VGAP = 2
DEFAULT_VARIANT_HEIGHT = 10
DEFAULT_SQUISHED_CALL_HEIGHT = 1
DEFAULT_EXPANDED_CALL_HEIGHT = 10
WHOLE_GENOME_SQUISHED_CALL_HEIGHT = 2
WHOLE_GENOME_EXPANDED_CALL_HEIGHT = 12
MAX_CALL_BAND_HEIGHT = 2_000

# Bars narrower than MIN are widened, wider than MAX are narrowed
MIN_BAR_WIDTH = 3
MAX_BAR_WIDTH = 5

# Hit-test tolerance either side of the pointer
HIT_TOLERANCE_PIXELS = 2

# Visibility window heuristic (bp)
DEFAULT_VISIBILITY_WINDOW = 10**18
VISIBILITY_COMPUTE = "compute"
VISIBILITY_MIN_CALL_SETS = 10
VISIBILITY_BASE_BP = 1_000
VISIBILITY_SCALE = 2_500 * 40

# Colours
BACKGROUND_COLOR = "rgb(255, 255, 255)"
BAND_DIVIDER_COLOR = "rgb(224, 224, 224)"
DEFAULT_TRACK_COLOR = "rgb(0, 0, 150)"
HOMREF_COLOR = "rgb(200, 200, 200)"
HOMVAR_COLOR = "rgb(17, 248, 254)"
HETVAR_COLOR = "rgb(34, 12, 253)"

# Display mode menu labels, in menu order
DISPLAY_MODE_LABELS = {
    "COLLAPSED": "Collapse",
    "SQUISHED": "Squish",
    "EXPANDED": "Expand",
}
DEFAULT_DISPLAY_MODE = "COLLAPSED"

# Gene lookup cache
DEFAULT_GENE_CACHE_TTL_SECONDS = 86_400  # 24 hours

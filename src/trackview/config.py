"""Configuration for the trackview server, loaded from environment variables."""

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_DISPLAY_MODE,
    DEFAULT_FLANKING,
    DEFAULT_GENE_CACHE_TTL_SECONDS,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MINIMUM_BASES,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
    DEFAULT_VIEWPORT_WIDTH,
    DISPLAY_MODE_LABELS,
    VALID_TRANSPORTS,
    VISIBILITY_COMPUTE,
)


@dataclass
class TrackViewConfig:
    """Session and server configuration loaded from environment variables."""

    # Reference settings
    reference: str | None = None
    genome: str | None = None

    # Session settings
    locus: str | None = None
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    display_mode: str = DEFAULT_DISPLAY_MODE
    visibility_window: int | str = VISIBILITY_COMPUTE
    flanking: int = DEFAULT_FLANKING
    minimum_bases: int = DEFAULT_MINIMUM_BASES

    # Transport settings
    transport: str = DEFAULT_TRANSPORT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    # Gene lookup settings
    ncbi_api_key: str | None = None
    gene_cache_ttl: int = DEFAULT_GENE_CACHE_TTL_SECONDS

    # Security settings
    allowed_directories: list[str] | None = None

    def __post_init__(self) -> None:
        """Validate config values and normalise case-insensitive fields."""
        if self.locus is not None:
            self.locus = self.locus.strip().lower() or None

        self.display_mode = self.display_mode.upper()
        if self.display_mode not in DISPLAY_MODE_LABELS:
            raise ValueError(
                f"display_mode must be one of {tuple(DISPLAY_MODE_LABELS)}, "
                f"got '{self.display_mode}'"
            )

        if self.viewport_width < 1:
            raise ValueError(f"viewport_width must be at least 1, got {self.viewport_width}")

        if self.flanking < 0:
            raise ValueError(f"flanking must be non-negative, got {self.flanking}")

        if self.minimum_bases < 1:
            raise ValueError(f"minimum_bases must be at least 1, got {self.minimum_bases}")

        if self.visibility_window != VISIBILITY_COMPUTE:
            if not isinstance(self.visibility_window, int) or self.visibility_window < 1:
                raise ValueError(
                    "visibility_window must be a positive integer or "
                    f"'{VISIBILITY_COMPUTE}', got {self.visibility_window!r}"
                )

        if self.transport not in VALID_TRANSPORTS:
            raise ValueError(f"transport must be one of {VALID_TRANSPORTS}, got '{self.transport}'")

        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

        if self.gene_cache_ttl < 0:
            raise ValueError(f"gene_cache_ttl must be non-negative, got {self.gene_cache_ttl}")

    @classmethod
    def from_env(cls) -> "TrackViewConfig":
        """Create config from environment variables."""
        env = os.environ

        visibility_raw = env.get("TRACKVIEW_VISIBILITY_WINDOW", VISIBILITY_COMPUTE)
        visibility: int | str = (
            VISIBILITY_COMPUTE if visibility_raw == VISIBILITY_COMPUTE else int(visibility_raw)
        )

        return cls(
            reference=env.get("TRACKVIEW_REFERENCE"),
            genome=env.get("TRACKVIEW_GENOME"),
            locus=env.get("TRACKVIEW_LOCUS"),
            viewport_width=int(env.get("TRACKVIEW_VIEWPORT_WIDTH", str(DEFAULT_VIEWPORT_WIDTH))),
            display_mode=env.get("TRACKVIEW_DISPLAY_MODE", DEFAULT_DISPLAY_MODE),
            visibility_window=visibility,
            flanking=int(env.get("TRACKVIEW_FLANKING", str(DEFAULT_FLANKING))),
            minimum_bases=int(env.get("TRACKVIEW_MINIMUM_BASES", str(DEFAULT_MINIMUM_BASES))),
            transport=env.get("TRACKVIEW_TRANSPORT", DEFAULT_TRANSPORT),
            host=env.get("TRACKVIEW_HOST", DEFAULT_HOST),
            port=int(env.get("TRACKVIEW_PORT", str(DEFAULT_PORT))),
            log_level=env.get("TRACKVIEW_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            ncbi_api_key=env.get("TRACKVIEW_NCBI_API_KEY"),
            gene_cache_ttl=int(
                env.get("TRACKVIEW_GENE_CACHE_TTL", str(DEFAULT_GENE_CACHE_TTL_SECONDS))
            ),
            allowed_directories=[
                d.strip()
                for d in env.get("TRACKVIEW_ALLOWED_DIRECTORIES", "").split(",")
                if d.strip()
            ]
            or None,
        )

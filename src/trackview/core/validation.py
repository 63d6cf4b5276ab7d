"""Input validation for trackview tool handlers.

Provides validation for variant file paths, locus query strings and
viewport coordinates.
"""

from __future__ import annotations

from pathlib import Path

from ..config import TrackViewConfig

# Input length limits
MAX_FILE_PATH_LENGTH = 2048
MAX_LOCUS_LENGTH = 1000
MAX_LOCUS_COUNT = 20

# Allowed variant file extensions
ALLOWED_FILE_EXTENSIONS = (".vcf", ".vcf.gz", ".bcf")


def _within(path: Path, directory: str) -> bool:
    try:
        return path.is_relative_to(Path(directory).resolve())
    except OSError:
        return False


def validate_locus(locus: str) -> list[str]:
    """Split a locus query string into individual loci.

    Args:
        locus: One or more whitespace separated loci, e.g. ``"chr1:1-100 BRCA1"``.

    Returns:
        The individual locus queries.

    Raises:
        ValueError: If the string is empty, too long or names too many loci.
    """
    if len(locus) > MAX_LOCUS_LENGTH:
        raise ValueError(f"Locus string too long (max {MAX_LOCUS_LENGTH} characters)")

    queries = locus.split()
    if not queries:
        raise ValueError("Locus must not be empty")
    if len(queries) > MAX_LOCUS_COUNT:
        raise ValueError(f"Too many loci (max {MAX_LOCUS_COUNT})")
    return queries


def validate_path(file_path: str, config: TrackViewConfig) -> None:
    """Validate that the file path is allowed by configuration.

    Args:
        file_path: Local path to a VCF/BCF file.
        config: Server configuration.

    Raises:
        ValueError: If the path is not allowed.
    """
    if len(file_path) > MAX_FILE_PATH_LENGTH:
        raise ValueError(f"File path too long (max {MAX_FILE_PATH_LENGTH} characters)")

    if "://" in file_path:
        raise ValueError("Remote files are not supported")

    lower_path = file_path.lower()
    if not any(lower_path.endswith(ext) for ext in ALLOWED_FILE_EXTENSIONS):
        raise ValueError(f"Unsupported file type. Allowed extensions: {ALLOWED_FILE_EXTENSIONS}")

    if config.allowed_directories:
        try:
            abs_path = Path(file_path).resolve()
        except OSError as e:
            raise ValueError(f"Invalid path: {file_path}") from e

        if not any(_within(abs_path, d) for d in config.allowed_directories):
            raise ValueError("Path is not in allowed directories")


def validate_point(x: float, y: float) -> None:
    """Reject negative viewport coordinates.

    Raises:
        ValueError: If either coordinate is negative.
    """
    if x < 0 or y < 0:
        raise ValueError(f"Coordinates must be non-negative, got ({x}, {y})")

"""Reference genome registry, detection and chromosome length loading."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

import pysam

from .config import TrackViewConfig
from .errors import MissingReference

logger = logging.getLogger(__name__)

_GRCH37_LENGTHS = (
    249250621, 243199373, 198022430, 191154276, 180915260, 171115067,
    159138663, 146364022, 141213431, 135534747, 135006516, 133851895,
    115169878, 107349540, 102531392, 90354753, 81195210, 78077248,
    59128983, 63025520, 48129895, 51304566, 155270560, 59373566,
)  # fmt: skip

_GRCH38_LENGTHS = (
    248956422, 242193529, 198295559, 190214555, 181538259, 170805979,
    159345973, 145138636, 138394717, 133797422, 135086622, 133275309,
    114364328, 107043718, 101991189, 90338345, 83257441, 80373285,
    58617616, 64444167, 46709983, 50818468, 156040895, 57227415,
)  # fmt: skip

_HUMAN_NAMES = tuple(f"chr{i}" for i in range(1, 23)) + ("chrX", "chrY")

# Known genome builds with detection signatures and public references
GENOME_BUILDS: dict[str, dict] = {
    "GRCh38": {
        "aliases": ["hg38", "grch38", "grch38.p14", "grch38.p13"],
        "chr1_length": 248956422,
        "description": "Human genome build 38 (Dec 2013)",
        "fasta_url": "https://s3.amazonaws.com/igv.broadinstitute.org/genomes/seq/hg38/hg38.fa",
        "cytoband_url": (
            "https://s3.amazonaws.com/igv.broadinstitute.org/annotations/hg38/cytoBandIdeo.txt"
        ),
        "chromosomes": tuple(zip(_HUMAN_NAMES, _GRCH38_LENGTHS, strict=True)),
    },
    "GRCh37": {
        "aliases": ["hg19", "grch37", "b37", "hs37d5"],
        "chr1_length": 249250621,
        "description": "Human genome build 37 (Feb 2009)",
        "fasta_url": "https://s3.amazonaws.com/igv.broadinstitute.org/genomes/seq/hg19/hg19.fasta",
        "cytoband_url": (
            "https://s3.amazonaws.com/igv.broadinstitute.org/genomes/seq/hg19/cytoBand.txt"
        ),
        "chromosomes": tuple(zip(_HUMAN_NAMES, _GRCH37_LENGTHS, strict=True)),
    },
    "hg18": {
        "aliases": ["ncbi36"],
        "chr1_length": 247249719,
        "description": "Human genome build 36 (Mar 2006)",
        "fasta_url": "https://s3.amazonaws.com/igv.broadinstitute.org/genomes/seq/hg18/hg18.fasta",
        "cytoband_url": (
            "https://s3.amazonaws.com/igv.broadinstitute.org/genomes/seq/hg18/cytoBand.txt.gz"
        ),
        "chromosomes": (),
    },
}

# Primary assembled chromosomes: 1-99, X, Y with optional chr prefix
PRIMARY_CHROM_PATTERN = re.compile(r"^(chr)?(\d{1,2}|X|Y)$", re.IGNORECASE)


def normalize_chromosome_name(name: str) -> str:
    """Strip a ``chr`` prefix and upper-case letter names.

    Examples:
        >>> normalize_chromosome_name("chrX")
        "X"
        >>> normalize_chromosome_name("7")
        "7"
    """
    if name[:3].lower() == "chr":
        name = name[3:]
    return name.upper()


@dataclass(frozen=True)
class Genome:
    """A reference genome: its id and the ordered chromosome lengths.

    ``chromosomes`` is the ChromosomeLengths sequence. Its order is the order
    used for whole-genome cumulative offsets.
    """

    id: str
    chromosomes: tuple[tuple[str, int], ...]
    fasta_url: str | None = None
    cytoband_url: str | None = None
    _by_name: dict[str, tuple[str, int]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for name, length in self.chromosomes:
            self._by_name[normalize_chromosome_name(name)] = (name, length)

    @property
    def chromosome_names(self) -> list[str]:
        return [name for name, _ in self.chromosomes]

    def get_chromosome(self, name: str) -> tuple[str, int] | None:
        """Look up ``(canonical_name, length)`` accepting chr-prefixed aliases."""
        return self._by_name.get(normalize_chromosome_name(name))

    def whole_genome_lengths(self) -> list[tuple[str, int]]:
        """Chromosomes laid out on the whole-genome axis.

        Only primary chromosomes are used. If the reference names none,
        every contig is used.
        """
        primary = [(n, length) for n, length in self.chromosomes if PRIMARY_CHROM_PATTERN.match(n)]
        return primary or list(self.chromosomes)


def normalize_build_name(name: str) -> str | None:
    """Normalize build aliases to canonical names.

    Args:
        name: Build name or alias (e.g., "hg38", "GRCh38", "hg19")

    Returns:
        Canonical build name (e.g., "GRCh38") or None if not recognized.
    """
    name_lower = name.lower()

    for canonical, info in GENOME_BUILDS.items():
        if name_lower == canonical.lower():
            return canonical
        if name_lower in info["aliases"]:
            return canonical

    return None


def expand_genome(genome_id: str) -> Genome:
    """Expand a UCSC/NCBI style genome id into a Genome.

    Unknown ids fall back to GRCh37, matching the browser's historical default.
    """
    canonical = normalize_build_name(genome_id) or "GRCh37"
    info = GENOME_BUILDS[canonical]
    return Genome(
        id=genome_id,
        chromosomes=tuple(info["chromosomes"]),
        fasta_url=info["fasta_url"],
        cytoband_url=info["cytoband_url"],
    )


def detect_genome_build(contigs: Iterable[tuple[str, int]]) -> dict:
    """Detect genome build from chromosome 1 length.

    Returns:
        Dictionary with ``build`` ("GRCh38", "GRCh37", "hg18" or "unknown")
        and ``evidence`` (list of strings).
    """
    lengths = {normalize_chromosome_name(name): length for name, length in contigs}
    chr1_length = lengths.get("1")

    if chr1_length is None:
        return {"build": "unknown", "evidence": ["chr1/1 not found in contigs"]}

    for build_name, info in GENOME_BUILDS.items():
        if chr1_length == info["chr1_length"]:
            return {
                "build": build_name,
                "evidence": [f"chr1 length ({chr1_length:,}) matches {build_name}"],
            }

    return {
        "build": "unknown",
        "evidence": [f"chr1 length ({chr1_length:,}) does not match known human builds"],
    }


def load_fasta_genome(fasta_path: str, genome_id: str | None = None) -> Genome:
    """Read ordered chromosome lengths from a FASTA (and its .fai index).

    Raises:
        MissingReference: If the FASTA cannot be opened or has no contigs.
    """
    try:
        with pysam.FastaFile(fasta_path) as fasta:
            chromosomes = tuple(zip(fasta.references, fasta.lengths, strict=True))
    except (OSError, ValueError) as e:
        raise MissingReference(f"Cannot open reference FASTA '{fasta_path}': {e}") from e

    if not chromosomes:
        raise MissingReference(f"Reference FASTA '{fasta_path}' has no sequences")

    detected = detect_genome_build(chromosomes)
    logger.info(
        "Loaded reference %s (%d contigs, build %s)",
        fasta_path,
        len(chromosomes),
        detected["build"],
    )
    return Genome(id=genome_id or detected["build"], chromosomes=chromosomes, fasta_url=fasta_path)


def load_genome(config: TrackViewConfig) -> Genome:
    """Resolve the session's reference genome from configuration.

    A FASTA path takes precedence over a genome id.

    Raises:
        MissingReference: If no reference is configured or it has no lengths.
    """
    if config.reference:
        return load_fasta_genome(config.reference, config.genome)

    if not config.genome:
        raise MissingReference("Fatal error: reference must be defined")

    genome = expand_genome(config.genome)
    if not genome.chromosomes:
        raise MissingReference(
            f"No chromosome lengths known for genome '{config.genome}'; "
            "set TRACKVIEW_REFERENCE to an indexed FASTA"
        )
    return genome

"""VCF/BCF feature source using pysam."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import pysam

from ..core.features import Call, CallSet, FileHeader, Variant, assign_rows
from ..errors import FeatureSourceError
from ..reference import normalize_chromosome_name

logger = logging.getLogger(__name__)

# FORMAT keys surfaced as dedicated Call fields rather than info
_CALL_KEYS = ("GT", "PS", "GL")


def _info_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return [v for v in value if v is not None]
    return value


def _record_to_variant(record: pysam.VariantRecord, samples: list[str]) -> Variant:
    calls: dict[str, Call] = {}
    for sample in samples:
        data = record.samples[sample]
        raw_gt = data["GT"] if "GT" in record.format else None
        genotype = [a for a in (raw_gt or ()) if a is not None]
        if not genotype:
            continue
        likelihood = data.get("GL") if "GL" in record.format else None
        phaseset = data.get("PS") if "PS" in record.format else None
        calls[sample] = Call(
            genotype=genotype,
            info={
                key: _info_value(data[key])
                for key in record.format
                if key not in _CALL_KEYS and data[key] is not None
            },
            call_set_name=sample,
            phaseset=str(phaseset) if phaseset is not None else None,
            genotype_likelihood=list(likelihood) if likelihood else None,
        )

    info = {key: _info_value(value) for key, value in record.info.items()}
    return Variant(
        reference_name=record.chrom,
        start=record.start,
        end=record.stop,
        reference_bases=record.ref or "",
        alternate_bases=list(record.alts or ()),
        calls=calls,
        info=info,
        gene=info.pop("GENE", None),
        protein_change=info.pop("PROTEIN_CHANGE", None),
    )


class VcfFeatureSource:
    """Reads variants from an indexed VCF/BCF.

    Implements the header-provider capability: call-sets are the file's
    samples, and the track name defaults to the file name.
    """

    def __init__(self, path: str, name: str | None = None):
        self.path = path
        self.name = name or Path(path).name
        self._contig_aliases: dict[str, str] | None = None
        self._samples: list[str] | None = None

    def _open(self) -> pysam.VariantFile:
        try:
            return pysam.VariantFile(self.path)
        except (OSError, ValueError) as e:
            raise FeatureSourceError(f"Cannot open variant file '{self.path}': {e}") from e

    def _read_header(self) -> tuple[list[str], dict[str, str]]:
        with self._open() as vcf:
            samples = list(vcf.header.samples)
            aliases = {normalize_chromosome_name(c): c for c in vcf.header.contigs}
        return samples, aliases

    async def _ensure_header(self) -> tuple[list[str], dict[str, str]]:
        if self._samples is None or self._contig_aliases is None:
            self._samples, self._contig_aliases = await asyncio.to_thread(self._read_header)
        return self._samples, self._contig_aliases

    async def get_file_header(self) -> FileHeader:
        samples, _ = await self._ensure_header()
        return FileHeader(
            name=self.name,
            call_sets=[CallSet(id=s, name=s) for s in samples],
        )

    def _fetch(self, contig: str, start: int, end: int, samples: list[str]) -> list[Variant]:
        with self._open() as vcf:
            try:
                records = list(vcf.fetch(contig, max(0, start), end))
            except (OSError, ValueError) as e:
                raise FeatureSourceError(
                    f"Cannot read {contig}:{start}-{end} from '{self.path}': {e}"
                ) from e
            return [_record_to_variant(r, samples) for r in records]

    async def get_features(self, chromosome: str, start: int, end: int) -> list[Variant]:
        """Variants overlapping ``[start, end)``, with rows packed.

        Chromosome names are matched with or without a ``chr`` prefix; a
        chromosome absent from the file yields no features.
        """
        samples, aliases = await self._ensure_header()
        if aliases:
            contig = aliases.get(normalize_chromosome_name(chromosome))
        else:
            contig = chromosome
        if contig is None:
            logger.debug("%s has no contig matching %s", self.path, chromosome)
            return []

        features = await asyncio.to_thread(self._fetch, contig, start, end, samples)
        assign_rows(features)
        logger.debug("Loaded %d variants from %s:%d-%d", len(features), contig, start, end)
        return features

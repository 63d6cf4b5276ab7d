"""Gene name to locus resolution via NCBI Entrez.

Locus queries that are neither coordinates nor chromosome names are treated
as gene symbols and looked up in NCBI's Gene database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..constants import DEFAULT_GENE_CACHE_TTL_SECONDS
from ..core.locus import LocusInterval
from ..reference import normalize_build_name
from .ttl_cache import BoundedTTLCache

logger = logging.getLogger(__name__)

NCBI_GENE_SEARCH = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esearch.fcgi"
NCBI_GENE_SUMMARY = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esummary.fcgi"

GRCH37_ASSEMBLY = "GCF_000001405.25"
HUMAN_ASSEMBLY_PREFIX = "GCF_000001405"

# RefSeq chromosome accessions (without version) to chromosome names
NC_TO_CHROM = {f"NC_{i:06d}": f"chr{i}" for i in range(1, 23)}
NC_TO_CHROM.update({"NC_000023": "chrX", "NC_000024": "chrY", "NC_012920": "chrM"})


@dataclass
class GeneInfo:
    """Gene annotation with genomic coordinates."""

    symbol: str
    name: str
    chrom: str
    start: int
    end: int
    strand: str


def accession_to_chrom(accession: str) -> str:
    """Convert a RefSeq accession like ``NC_000001.11`` to ``chr1``.

    Unknown accessions are returned unchanged.
    """
    return NC_TO_CHROM.get(accession.split(".")[0], accession)


class GeneClient:
    """NCBI Gene client implementing the locus-resolver interface.

    Lookups (including misses) are cached for ``cache_ttl`` seconds.
    """

    def __init__(
        self,
        api_key: str | None = None,
        genome_build: str = "GRCh37",
        timeout: float = 10.0,
        cache_ttl: float = DEFAULT_GENE_CACHE_TTL_SECONDS,
    ):
        self.api_key = api_key
        self.genome_build = normalize_build_name(genome_build) or genome_build
        self._client = httpx.AsyncClient(timeout=timeout)
        self._cache: BoundedTTLCache[GeneInfo | None] = BoundedTTLCache(ttl=cache_ttl)

    def _params(self, **params: str) -> dict:
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    def _pick_coordinates(self, genomic_info: list[dict]) -> dict | None:
        for info in genomic_info:
            assembly = info.get("assemblyaccver", "")
            if self.genome_build == "GRCh37" and assembly.startswith(GRCH37_ASSEMBLY):
                return info
            if (
                self.genome_build == "GRCh38"
                and assembly.startswith(HUMAN_ASSEMBLY_PREFIX)
                and not assembly.startswith(GRCH37_ASSEMBLY)
            ):
                return info
        return genomic_info[0] if genomic_info else None

    async def _fetch(self, symbol: str) -> GeneInfo | None:
        """None means NCBI has no usable record; transport errors propagate."""
        resp = await self._client.get(
            NCBI_GENE_SEARCH,
            params=self._params(
                db="gene",
                term=f"{symbol}[Gene Name] AND Homo sapiens[Organism]",
                retmode="json",
            ),
        )
        resp.raise_for_status()
        id_list = resp.json().get("esearchresult", {}).get("idlist", [])
        if not id_list:
            return None

        gene_id = id_list[0]
        resp = await self._client.get(
            NCBI_GENE_SUMMARY,
            params=self._params(db="gene", id=gene_id, retmode="json"),
        )
        resp.raise_for_status()
        gene_data = resp.json().get("result", {}).get(gene_id, {})

        if not gene_data:
            return None

        genomic_info = gene_data.get("genomicinfo") or gene_data.get("locationhist") or []
        coords = self._pick_coordinates(genomic_info)
        if coords is None:
            return None

        chrom_start = coords.get("chrstart", 0)
        chrom_stop = coords.get("chrstop", 0)
        return GeneInfo(
            symbol=gene_data.get("name", symbol),
            name=gene_data.get("description", ""),
            chrom=accession_to_chrom(coords.get("chraccver", "")),
            start=min(chrom_start, chrom_stop),
            end=max(chrom_start, chrom_stop),
            strand="+" if chrom_start <= chrom_stop else "-",
        )

    async def search(self, symbol: str) -> GeneInfo | None:
        """Look up gene coordinates by symbol (e.g. ``"BRCA1"``)."""
        found, cached = await self._cache.get(symbol)
        if found:
            logger.debug("Gene cache hit for %r", symbol)
            return cached

        try:
            info = await self._fetch(symbol)
        except (httpx.HTTPError, ValueError) as e:
            # failures are not remembered; only real misses are
            logger.warning("Gene lookup for %r failed: %s", symbol, e)
            return None
        await self._cache.set(symbol, info)
        return info

    async def resolve(self, name: str) -> LocusInterval | None:
        info = await self.search(name)
        if info is None:
            return None
        return LocusInterval(info.chrom, info.start, info.end, name)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

"""Shared test fixtures for trackview tests."""

import pysam
import pytest

from trackview.core.features import Call, CallSet, FileHeader, InMemoryFeatureSource, Variant
from trackview.reference import Genome

VCF_TEXT = """\
##fileformat=VCFv4.2
##contig=<ID=chr1,length=10000>
##contig=<ID=chr2,length=5000>
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total depth">
##INFO=<ID=GENE,Number=1,Type=String,Description="Gene symbol">
##INFO=<ID=PROTEIN_CHANGE,Number=1,Type=String,Description="Protein change">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=PS,Number=1,Type=Integer,Description="Phase set">
##FORMAT=<ID=GQ,Number=1,Type=Integer,Description="Genotype quality">
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tNA1\tNA2
chr1\t1501\t.\tA\tG\t50\tPASS\tDP=30;GENE=ABC1;PROTEIN_CHANGE=p.K12R\tGT:PS:GQ\t0/1:1400:99\t1/1:.:80
chr1\t1503\t.\tC\tT\t50\tPASS\tDP=12\tGT:PS:GQ\t0/0:.:60\t0/1:.:70
chr2\t101\t.\tG\tA\t50\tPASS\tDP=8\tGT:PS:GQ\t./.:.:.\t0/1:.:50
"""


class RecordingSurface:
    """Surface that records draw calls instead of rasterising them."""

    def __init__(self, width=1000, height=200):
        self.width = width
        self.height = height
        self.rects = []
        self.lines = []
        self.texts = []

    def fill_rect(self, x, y, width, height, color):
        self.rects.append((x, y, width, height, color))

    def stroke_line(self, x1, y1, x2, y2, color):
        self.lines.append((x1, y1, x2, y2, color))

    def fill_text(self, text, x, y, color):
        self.texts.append((text, x, y, color))


@pytest.fixture
def genome():
    """Small three-chromosome reference."""
    return Genome(id="test", chromosomes=(("chr1", 10_000), ("chr2", 5_000), ("chrX", 2_000)))


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def call_sets():
    return [CallSet(id="s1", name="S1"), CallSet(id="s2", name="S2")]


@pytest.fixture
def snv():
    """A single-base variant at chr1:1500 called in two samples."""
    return Variant(
        reference_name="chr1",
        start=1500,
        end=1501,
        reference_bases="A",
        alternate_bases=["G"],
        calls={
            "s1": Call(genotype=[0, 1], call_set_name="S1"),
            "s2": Call(
                genotype=[1, 1],
                call_set_name="S2",
                phaseset="7",
                genotype_likelihood=[-0.1, -1.0, -5.0],
            ),
        },
        info={"DP": 30},
        gene="ABC1",
        protein_change="p.K12R",
    )


@pytest.fixture
def chr2_variant():
    return Variant(
        reference_name="chr2",
        start=2500,
        end=2501,
        reference_bases="C",
        alternate_bases=["T"],
        calls={"s1": Call(genotype=[0, 0], call_set_name="S1")},
    )


@pytest.fixture
def source(snv, chr2_variant, call_sets):
    """In-memory source with a header naming two call-sets."""
    return InMemoryFeatureSource(
        [snv, chr2_variant], FileHeader(name="cohort.vcf", call_sets=call_sets)
    )


@pytest.fixture
def vcf_path(tmp_path):
    """bgzipped, tabix-indexed VCF with two samples."""
    path = tmp_path / "calls.vcf"
    path.write_text(VCF_TEXT)
    return pysam.tabix_index(str(path), preset="vcf", force=True)

"""Unit tests for trackview.core.wholegenome module."""

import pytest

from trackview.core.wholegenome import WholeGenomeTable
from trackview.reference import expand_genome


class TestWholeGenomeTable:
    """Tests for the whole-genome pixel axis."""

    @pytest.mark.unit
    def test_proportional_spans(self):
        table = WholeGenomeTable([("a", 100), ("b", 50)], 300)
        assert table.chromosome_to_pixel_span("a") == (0, 200)
        assert table.chromosome_to_pixel_span("b") == (200, 300)
        assert table.total_bp == 150

    @pytest.mark.unit
    def test_last_span_absorbs_rounding(self):
        table = WholeGenomeTable([("a", 1), ("b", 1), ("c", 1)], 10)
        assert table.spans() == [("a", 0, 3), ("b", 3, 6), ("c", 6, 10)]

    @pytest.mark.unit
    @pytest.mark.parametrize("width", [1, 7, 800, 1000, 1913])
    def test_spans_are_contiguous(self, width):
        table = WholeGenomeTable(expand_genome("hg19").whole_genome_lengths(), width)
        spans = table.spans()
        assert spans[0][1] == 0
        assert spans[-1][2] == width
        for (_, _, end), (_, start, _) in zip(spans, spans[1:]):
            assert end == start

    @pytest.mark.unit
    def test_pixel_to_chromosome(self):
        table = WholeGenomeTable([("a", 100), ("b", 50)], 300)
        assert table.pixel_to_chromosome(0) == "a"
        assert table.pixel_to_chromosome(199.5) == "a"
        assert table.pixel_to_chromosome(200) == "b"
        assert table.pixel_to_chromosome(299) == "b"

    @pytest.mark.unit
    @pytest.mark.parametrize("px", [-1, 300, 1000])
    def test_pixel_outside_axis(self, px):
        table = WholeGenomeTable([("a", 100), ("b", 50)], 300)
        assert table.pixel_to_chromosome(px) is None

    @pytest.mark.unit
    def test_bp_to_pixel_interpolates(self):
        table = WholeGenomeTable([("a", 100), ("b", 50)], 300)
        assert table.bp_to_pixel("b", 25) == pytest.approx(250)
        assert table.bp_to_pixel("a", 0) == 0

    @pytest.mark.unit
    def test_bp_to_pixel_unknown_or_empty_chromosome(self):
        table = WholeGenomeTable([("a", 100), ("b", 0)], 300)
        assert table.bp_to_pixel("zz", 10) is None
        assert table.bp_to_pixel("b", 0) is None

    @pytest.mark.unit
    def test_human_sex_chromosome_indices(self):
        table = WholeGenomeTable(expand_genome("hg19").whole_genome_lengths(), 1000)
        assert table.chromosome_index("chrX") == 22
        assert table.chromosome_index("Y") == 23
        assert len(table) == 24

    @pytest.mark.unit
    def test_empty_table(self):
        table = WholeGenomeTable([], 100)
        assert len(table) == 0
        assert table.pixel_to_chromosome(10) is None

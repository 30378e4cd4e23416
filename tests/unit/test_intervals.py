"""Tests for genomic intervals and reference feature sets."""

from collections import OrderedDict
from pathlib import Path
import sys

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from circannot.core.intervals import (
    FeatureSets,
    GenomicInterval,
    IntervalSet,
    normalize_strand,
    strand_compatible,
)
from circannot.exceptions import (
    ConfigurationError,
    FileFormatError,
    IntervalTypeError,
    InvalidIntervalError,
)


class TestGenomicInterval:
    """Test cases for GenomicInterval."""

    def test_width_and_points(self):
        iv = GenomicInterval("chr1", 10, 20, "+", "x")
        assert iv.width == 11
        assert iv.point_start() == GenomicInterval("chr1", 10, 10, "+", "x")
        assert iv.point_end() == GenomicInterval("chr1", 20, 20, "+", "x")

    def test_dot_strand_is_unstranded(self):
        assert GenomicInterval("chr1", 1, 2, ".").strand == "*"
        assert normalize_strand(None) == "*"
        assert normalize_strand("") == "*"

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidIntervalError):
            GenomicInterval("chr1", 20, 10)

    def test_negative_start_rejected(self):
        with pytest.raises(InvalidIntervalError):
            GenomicInterval("chr1", -1, 10)

    def test_unknown_strand_rejected(self):
        with pytest.raises(FileFormatError):
            GenomicInterval("chr1", 1, 10, "x")

    def test_strand_compatibility(self):
        assert strand_compatible("+", "+")
        assert strand_compatible("+", "*")
        assert strand_compatible("*", "-")
        assert not strand_compatible("+", "-")


class TestIntervalSet:
    """Test cases for IntervalSet queries."""

    @pytest.fixture
    def genes(self):
        return IntervalSet(
            [
                GenomicInterval("chr1", 100, 200, "+", "A"),
                GenomicInterval("chr1", 150, 300, "-", "B"),
                GenomicInterval("chr1", 180, 400, "*", "C"),
                GenomicInterval("chr2", 100, 200, "+", "D"),
            ]
        )

    def test_any_overlap_is_closed(self, genes):
        # 200 is the last base of A
        hits = genes.query(GenomicInterval("chr1", 200, 200, "+"), strand_aware=False)
        assert hits == [0, 1, 2]
        assert genes.query(GenomicInterval("chr1", 401, 500, "+")) == []

    def test_strand_aware_query(self, genes):
        hits = genes.query(GenomicInterval("chr1", 190, 190, "+"))
        assert hits == [0, 2]
        hits = genes.query(GenomicInterval("chr1", 190, 190, "-"))
        assert hits == [1, 2]
        hits = genes.query(GenomicInterval("chr1", 190, 190, "*"))
        assert hits == [0, 1, 2]

    def test_within_requires_containment(self, genes):
        query = GenomicInterval("chr1", 190, 250, "*")
        assert genes.query(query, overlap_type="within") == [1, 2]
        assert genes.query(query, overlap_type="any") == [0, 1, 2]

    def test_unknown_chromosome(self, genes):
        assert genes.query(GenomicInterval("chrX", 1, 1000)) == []

    def test_unknown_overlap_type(self, genes):
        with pytest.raises(ConfigurationError):
            genes.query(GenomicInterval("chr1", 1, 2), overlap_type="partial")

    def test_from_frame_and_back(self):
        df = pd.DataFrame(
            {
                "chrom": ["chr1", "chr1"],
                "start": [5, 50],
                "end": [10, 60],
                "strand": ["+", "."],
                "gene_id": ["g1", "g2"],
            }
        )
        intervals = IntervalSet.from_frame(df, name_column="gene_id")
        assert len(intervals) == 2
        assert intervals[1].strand == "*"
        frame = intervals.to_frame()
        assert frame["name"].tolist() == ["g1", "g2"]
        assert frame["start"].tolist() == [5, 50]

    def test_from_frame_missing_column(self):
        with pytest.raises(FileFormatError):
            IntervalSet.from_frame(pd.DataFrame({"chrom": ["chr1"], "start": [1]}))

    def test_rejects_non_intervals(self):
        with pytest.raises(IntervalTypeError):
            IntervalSet([("chr1", 1, 2)])

    def test_starts_and_ends(self, genes):
        assert [iv.start for iv in genes.starts()] == [100, 150, 180, 100]
        assert [iv.end for iv in genes.ends()] == [200, 300, 400, 200]
        assert all(iv.width == 1 for iv in genes.ends())


class TestFeatureSets:
    """Test cases for precedence-ordered reference collections."""

    @pytest.fixture
    def tier(self):
        return IntervalSet([GenomicInterval("chr1", 1, 10, "+")])

    def test_mapping_order_is_precedence(self, tier):
        sets = FeatureSets(OrderedDict([("cds", tier), ("intron", tier)]))
        assert sets.names == ["cds", "intron"]
        assert sets.rank("cds") == 0
        assert sets.rank("intron") == 1
        assert "cds" in sets
        assert len(sets) == 2

    def test_pair_list(self, tier):
        sets = FeatureSets([("b", tier), ("a", tier)])
        assert list(sets) == ["b", "a"]
        assert sets["a"] is tier

    def test_non_interval_member(self, tier):
        with pytest.raises(IntervalTypeError):
            FeatureSets({"cds": tier, "intron": [1, 2, 3]})

    def test_non_interval_member_is_type_error(self, tier):
        with pytest.raises(TypeError):
            FeatureSets({"cds": "chr1:1-10"})

    @pytest.mark.parametrize("bad", [set(), frozenset(["x"]), "cds", 42])
    def test_unordered_or_unsupported_shapes(self, bad):
        with pytest.raises(ConfigurationError):
            FeatureSets(bad)

    def test_bare_interval_set_rejected(self, tier):
        with pytest.raises(ConfigurationError):
            FeatureSets(tier)

    def test_empty_and_duplicates(self, tier):
        with pytest.raises(ConfigurationError):
            FeatureSets({})
        with pytest.raises(ConfigurationError):
            FeatureSets([("a", tier), ("a", tier)])
        with pytest.raises(ConfigurationError):
            FeatureSets([("a", tier, "extra")])

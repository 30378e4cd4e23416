"""Tests for building reference collections from a GTF."""

from pathlib import Path
import sys

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from circannot.core.intervals import FeatureSets, GenomicInterval, IntervalSet
from circannot.exceptions import ConfigurationError, FileFormatError, IntervalTypeError
from circannot.modules.annotation_db import (
    ReferenceAnnotation,
    load_annotation,
    read_gtf,
    reduce_intervals,
)


def _spans(interval_set):
    return [(iv.start, iv.end, iv.strand) for iv in interval_set]


class TestReduceIntervals:
    """Test cases for reduce_intervals."""

    def test_merges_overlapping_and_adjacent(self):
        df = pd.DataFrame(
            {
                "chrom": ["chr1"] * 4 + ["chr2"],
                "start": [10, 15, 31, 100, 10],
                "end": [20, 30, 40, 120, 20],
                "strand": ["+"] * 5,
            }
        )
        out = reduce_intervals(df)
        assert list(zip(out["chrom"], out["start"], out["end"])) == [
            ("chr1", 10, 40),
            ("chr1", 100, 120),
            ("chr2", 10, 20),
        ]

    def test_strands_kept_apart(self):
        df = pd.DataFrame(
            {"chrom": ["chr1", "chr1"], "start": [10, 15], "end": [20, 30], "strand": ["+", "-"]}
        )
        assert len(reduce_intervals(df)) == 2

    def test_nested_interval(self):
        df = pd.DataFrame(
            {"chrom": ["chr1"] * 3, "start": [10, 12, 60], "end": [50, 20, 70], "strand": ["+"] * 3}
        )
        out = reduce_intervals(df)
        assert list(zip(out["start"], out["end"])) == [(10, 50), (60, 70)]

    def test_empty(self):
        assert reduce_intervals(pd.DataFrame(columns=["chrom", "start", "end", "strand"])).empty


class TestLoadAnnotation:
    """Test cases for load_annotation on the toy GTF."""

    def test_genes(self, annotation):
        genes = annotation.genes
        assert [iv.name for iv in genes] == ["GENEP", "GENEM"]
        assert [iv.chrom for iv in genes] == ["chr1", "chr1"]
        assert _spans(genes) == [(100, 600, "+"), (1000, 1300, "-")]

    def test_feature_order(self, annotation):
        assert annotation.gene_feats.names == ["utr5", "utr3", "cds", "intron"]
        assert annotation.junctions.names == ["start", "end"]

    def test_utrs_including_generic(self, annotation):
        assert _spans(annotation.gene_feats["utr5"]) == [(100, 149, "+"), (1251, 1300, "-")]
        assert _spans(annotation.gene_feats["utr3"]) == [(553, 600, "+"), (1000, 1049, "-")]

    def test_cds_includes_stop_codon(self, annotation):
        assert _spans(annotation.gene_feats["cds"]) == [
            (150, 200, "+"),
            (300, 400, "+"),
            (500, 552, "+"),
            (1050, 1100, "-"),
            (1200, 1250, "-"),
        ]

    def test_introns(self, annotation):
        assert _spans(annotation.gene_feats["intron"]) == [
            (201, 299, "+"),
            (401, 499, "+"),
            (1101, 1199, "-"),
        ]

    def test_junction_points(self, annotation):
        starts = sorted(iv.start for iv in annotation.junctions["start"])
        ends = sorted(iv.end for iv in annotation.junctions["end"])
        assert starts == [100, 300, 500, 1000, 1200]
        assert ends == [200, 400, 600, 1100, 1300]
        assert all(iv.width == 1 for iv in annotation.junctions["start"])

    def test_non_standard_chromosomes_dropped(self, annotation):
        assert all(iv.chrom == "chr1" for iv in annotation.junctions["start"])

    def test_custom_feature_order(self, gtf_file):
        annotation = load_annotation(gtf_file, feature_order=["cds", "intron"])
        assert annotation.gene_feats.names == ["cds", "intron"]

    def test_bad_feature_order(self, gtf_file):
        with pytest.raises(ConfigurationError):
            load_annotation(gtf_file, feature_order=["cds", "exon"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_annotation(tmp_path / "missing.gtf")

    def test_short_rows(self, tmp_path):
        path = tmp_path / "bad.gtf"
        path.write_text("chr1\ttoy\texon\t1\t10\n")
        with pytest.raises(FileFormatError):
            read_gtf(path)

    def test_genes_from_exons_without_gene_rows(self, tmp_path):
        path = tmp_path / "exons.gtf"
        path.write_text(
            'chr2\ttoy\texon\t10\t20\t.\t+\t.\tgene_id "X"; transcript_id "X1";\n'
            'chr2\ttoy\texon\t40\t50\t.\t+\t.\tgene_id "X"; transcript_id "X1";\n'
        )
        annotation = load_annotation(path)
        assert _spans(annotation.genes) == [(10, 50, "+")]
        assert _spans(annotation.gene_feats["intron"]) == [(21, 39, "+")]
        assert len(annotation.gene_feats["utr5"]) == 0


class TestReferenceAnnotation:
    """Test cases for ReferenceAnnotation coercion."""

    def test_from_mapping(self):
        genes = IntervalSet([GenomicInterval("chr1", 1, 10, "+", "G")])
        coerced = ReferenceAnnotation.coerce(
            {
                "genes": genes,
                "gene_feats": {"cds": genes},
                "junctions": [("start", genes), ("end", genes)],
            }
        )
        assert isinstance(coerced.gene_feats, FeatureSets)
        assert coerced.junctions.names == ["start", "end"]

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            ReferenceAnnotation.coerce({"genes": IntervalSet()})

    def test_wrong_type(self):
        with pytest.raises(IntervalTypeError):
            ReferenceAnnotation.coerce(["genes"])

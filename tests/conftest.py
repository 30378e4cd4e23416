"""Pytest configuration for circannot tests."""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def reset_logging_after_test():
    """Reset circannot logger state after each test.

    setup_logging() sets propagate=False, which breaks caplog in later tests.
    """
    yield
    app_logger = logging.getLogger("circannot")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True


# A small GTF on chr1 (and an unplaced scaffold that must be dropped).
#
#   GENEP (+): transcript TP1, exons 100-200, 300-400, 500-600
#              5'UTR 100-149, CDS 150-200, 300-400, 500-549, stop 550-552,
#              3'UTR 553-600
#   GENEM (-): transcript TM1, exons 1000-1100, 1200-1300
#              only generic UTR rows: 1000-1049 (3'), 1251-1300 (5')
GTF_LINES = [
    ("1", "gene", 100, 600, "+", 'gene_id "GENEP";'),
    ("1", "transcript", 100, 600, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "exon", 100, 200, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "exon", 300, 400, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "exon", 500, 600, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "five_prime_utr", 100, 149, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "CDS", 150, 200, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "CDS", 300, 400, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "CDS", 500, 549, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "stop_codon", 550, 552, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "three_prime_utr", 553, 600, "+", 'gene_id "GENEP"; transcript_id "TP1";'),
    ("1", "gene", 1000, 1300, "-", 'gene_id "GENEM";'),
    ("1", "exon", 1000, 1100, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("1", "exon", 1200, 1300, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("1", "CDS", 1050, 1100, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("1", "CDS", 1200, 1250, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("1", "UTR", 1000, 1049, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("1", "UTR", 1251, 1300, "-", 'gene_id "GENEM"; transcript_id "TM1";'),
    ("GL000192.1", "exon", 10, 20, "+", 'gene_id "SCAF"; transcript_id "TS1";'),
]


@pytest.fixture
def gtf_file(tmp_path):
    """Write the toy GTF and return its path."""
    path = tmp_path / "genes.gtf"
    lines = ["#!genome-build toy"]
    for chrom, feature, start, end, strand, attrs in GTF_LINES:
        lines.append("\t".join([chrom, "toy", feature, str(start), str(end), ".", strand, ".", attrs]))
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def annotation(gtf_file):
    from circannot.modules.annotation_db import load_annotation

    return load_annotation(gtf_file)


@pytest.fixture
def sites_file(tmp_path):
    """find_circ sites.bed (BED starts) with linear and circular junctions."""
    rows = [
        # circ using GENEP exon 2 (1-based 300-400) back-spliced
        ("chr1", 299, 400, "circ_001", 12, "+"),
        # circ from the 5'UTR of exon 1 into the CDS of exon 3
        ("chr1", 119, 520, "circ_002", 3, "+"),
        # GENEM exons 1-2, minus strand
        ("chr1", 999, 1300, "circ_003", 7, "-"),
        # intergenic
        ("chr1", 5000, 5200, "circ_004", 1, "+"),
        # linear junctions sharing circ_001's splice sites
        ("chr1", 200, 299, "norm_001", 20, "+"),
        ("chr1", 400, 499, "norm_002", 30, "+"),
        ("chr1", 150, 299, "norm_003", 5, "+"),
    ]
    path = tmp_path / "sites.bed"
    path.write_text(
        "".join("\t".join(str(x) for x in row) + "\n" for row in rows)
    )
    return path


class StubResolver:
    """Symbol resolver returning fixed symbols and recording its input."""

    def __init__(self, symbols):
        self.symbols = symbols
        self.calls = []

    def __call__(self, gene_ids):
        gene_ids = list(gene_ids)
        self.calls.append(gene_ids)
        return {g: self.symbols.get(g) for g in gene_ids if g in self.symbols}


@pytest.fixture
def stub_resolver():
    return StubResolver({"GENEP": "PLUS1", "GENEM": "MINUS1"})

"""
circannot Column Naming Standards

Column names used for candidate tables. Input names follow the find_circ
output; annotation columns keep the dotted names of the published tables
(``junct.known``, ``host.candidates``).

Coordinates:
- Files on disk are BED-like: 0-based start, end exclusive
- In-memory candidate tables are 1-based closed after the pipeline's
  coordinate step
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ColumnStandard:
    """Defines the column naming standard for candidate tables."""

    # === Genomic Coordinates ===
    CHROM = "chrom"
    START = "start"
    END = "end"
    STRAND = "strand"

    # === find_circ identity and support ===
    NAME = "name"
    N_READS = "n_reads"
    N_UNIQ = "n_uniq"

    # === Linear support / ratio ===
    LIN_START = "lin_start"  # linear reads spliced at the start boundary
    LIN_END = "lin_end"  # linear reads spliced at the end boundary
    LIN_READS = "lin_reads"  # max(lin_start, lin_end)
    RATIO = "ratio"  # circular-to-linear read ratio

    # === Annotation ===
    HOST = "host"
    FEATURE = "feature"
    JUNCT_KNOWN = "junct.known"
    GENE = "gene"

    # === circBase ===
    CIRC_ID = "circID"


# Positional column names of find_circ sites.bed / splice_sites.bed
FIND_CIRC_COLUMNS = [
    "chrom",
    "start",
    "end",
    "name",
    "n_reads",
    "strand",
    "n_uniq",
    "uniq_bridges",
    "best_qual_left",
    "best_qual_right",
    "tissues",
    "tiss_counts",
    "edits",
    "anchor_overlap",
    "breakpoints",
    "signal",
    "strandmatch",
    "category",
]

REQUIRED_COLUMNS = [
    ColumnStandard.CHROM,
    ColumnStandard.START,
    ColumnStandard.END,
    ColumnStandard.NAME,
    ColumnStandard.N_READS,
    ColumnStandard.STRAND,
]

RATIO_COLUMNS = [
    ColumnStandard.LIN_START,
    ColumnStandard.LIN_END,
    ColumnStandard.LIN_READS,
    ColumnStandard.RATIO,
]

ANNOTATION_COLUMNS = [
    ColumnStandard.HOST,
    ColumnStandard.FEATURE,
    ColumnStandard.JUNCT_KNOWN,
    ColumnStandard.GENE,
]

# Bookkeeping columns that must never leak into returned tables
HOST_BOOKKEEPING = [
    "start.hit",
    "end.hit",
    "starts",
    "ends",
    "hitcnt",
    "hitgenes",
    "host.candidates",
]
FLANK_BOOKKEEPING = ["feat_start", "feat_end"]
JUNCTION_BOOKKEEPING = ["annotated_start_junction", "annotated_end_junction"]


def normalize_chrom(name: str) -> str:
    """Return a chr-prefixed chromosome name, with the mitochondrial contig as chrM."""
    name = str(name).strip()
    if not name.startswith("chr"):
        name = "chr" + name
    if name == "chrMT":
        name = "chrM"
    return name

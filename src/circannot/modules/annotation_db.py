"""
annotation_db - build the reference collections from a GTF file.

Produces three read-only references:

- ``genes``: gene bodies named by ``gene_id``
- ``gene_feats``: FeatureSets of reduced utr5, utr3, cds and intron intervals
  (in precedence order)
- ``junctions``: FeatureSets of exon start points and exon end points

Only standard chromosomes are kept, and chromosome names are normalized to
the ``chr`` prefix with ``chrM`` for the mitochondrial contig. Stop codons
are counted as coding sequence. GTFs that only carry generic ``UTR`` rows
have them split into 5'/3' by their position relative to the transcript's
coding sequence.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Sequence, Union

import pandas as pd

from circannot.constants import (
    DEFAULT_FEATURE_ORDER,
    FEATURE_CDS,
    FEATURE_INTRON,
    FEATURE_UTR3,
    FEATURE_UTR5,
    JUNCTION_END,
    JUNCTION_START,
    STRAND_MINUS,
)
from circannot.core.intervals import FeatureSets, IntervalSet, normalize_strand
from circannot.exceptions import ConfigurationError, FileFormatError, IntervalTypeError
from circannot.utils.column_standards import normalize_chrom
from circannot.utils.logging import LogTemplates, get_logger

logger = get_logger("annotation_db")

GTF_COLUMNS = [
    "chrom",
    "source",
    "feature",
    "start",
    "end",
    "score",
    "strand",
    "frame",
    "attribute",
]

STANDARD_CHROM = re.compile(r"^(chr)?([0-9]+[LR]?|[XYWZ]|M|MT)$")

CDS_FEATURES = ("CDS", "stop_codon")
UTR5_FEATURES = ("five_prime_utr", "five_prime_UTR", "5UTR")
UTR3_FEATURES = ("three_prime_utr", "three_prime_UTR", "3UTR")
GENERIC_UTR = "UTR"

INTERVAL_COLUMNS = ["chrom", "start", "end", "strand"]


@dataclass(frozen=True)
class ReferenceAnnotation:
    """Read-only reference collections consumed by the annotators."""

    genes: IntervalSet
    gene_feats: FeatureSets
    junctions: FeatureSets

    def __post_init__(self) -> None:
        if not isinstance(self.genes, IntervalSet):
            raise IntervalTypeError(f"genes must be an IntervalSet, got {type(self.genes).__name__}")
        for name in ("gene_feats", "junctions"):
            value = getattr(self, name)
            if not isinstance(value, FeatureSets):
                raise IntervalTypeError(f"{name} must be FeatureSets, got {type(value).__name__}")

    @classmethod
    def coerce(cls, annotation) -> "ReferenceAnnotation":
        """Accept a ReferenceAnnotation or a mapping with the three keys."""
        if isinstance(annotation, cls):
            return annotation
        if isinstance(annotation, Mapping):
            missing = {"genes", "gene_feats", "junctions"} - set(annotation)
            if missing:
                raise ConfigurationError(f"Annotation mapping is missing {sorted(missing)}")
            gene_feats = annotation["gene_feats"]
            junctions = annotation["junctions"]
            return cls(
                genes=annotation["genes"],
                gene_feats=gene_feats if isinstance(gene_feats, FeatureSets) else FeatureSets(gene_feats),
                junctions=junctions if isinstance(junctions, FeatureSets) else FeatureSets(junctions),
            )
        raise IntervalTypeError(
            f"Annotation must be a ReferenceAnnotation or mapping, got {type(annotation).__name__}"
        )


def read_gtf(path: Union[str, Path]) -> pd.DataFrame:
    """Read a (optionally gzipped) GTF into a DataFrame with gene/transcript ids."""
    try:
        gtf = pd.read_csv(
            path,
            sep="\t",
            comment="#",
            header=None,
            names=GTF_COLUMNS,
            dtype={"chrom": str, "feature": str, "strand": str, "attribute": str},
        )
    except pd.errors.EmptyDataError as exc:
        raise FileFormatError(f"GTF file is empty: {path}") from exc
    except pd.errors.ParserError as exc:
        raise FileFormatError(f"Malformed GTF {path}: {exc}") from exc

    if gtf["attribute"].isna().any():
        raise FileFormatError(f"GTF {path} has rows with fewer than 9 columns")
    try:
        gtf["start"] = gtf["start"].astype("int64")
        gtf["end"] = gtf["end"].astype("int64")
    except (ValueError, TypeError) as exc:
        raise FileFormatError(f"GTF {path} has non-integer coordinates: {exc}") from exc

    gtf["gene_id"] = gtf["attribute"].str.extract(r'gene_id "([^"]+)"', expand=False)
    gtf["transcript_id"] = gtf["attribute"].str.extract(r'transcript_id "([^"]+)"', expand=False)
    logger.info(LogTemplates.FILE_LOADED.format(count=len(gtf), path=path))
    return gtf


def keep_standard_chromosomes(gtf: pd.DataFrame) -> pd.DataFrame:
    """Drop scaffolds/patches and normalize chromosome names."""
    keep = gtf["chrom"].astype(str).str.match(STANDARD_CHROM)
    out = gtf.loc[keep].copy()
    out["chrom"] = out["chrom"].map(normalize_chrom)
    out["strand"] = out["strand"].map(normalize_strand)
    dropped = int((~keep).sum())
    if dropped:
        logger.debug(f"Dropped {dropped} GTF rows on non-standard sequences")
    return out


def reduce_intervals(df: pd.DataFrame) -> pd.DataFrame:
    """Merge overlapping or adjacent intervals per chromosome and strand."""
    if df.empty:
        return pd.DataFrame(columns=INTERVAL_COLUMNS)
    keys = ["chrom", "strand"]
    ordered = df[INTERVAL_COLUMNS].sort_values(keys + ["start", "end"]).reset_index(drop=True)
    prev_end = ordered.groupby(keys, sort=False)["end"].transform(lambda s: s.cummax().shift())
    new_block = prev_end.isna() | (ordered["start"] > prev_end + 1)
    ordered["block"] = new_block.cumsum()
    reduced = ordered.groupby("block", sort=False).agg(
        chrom=("chrom", "first"),
        start=("start", "min"),
        end=("end", "max"),
        strand=("strand", "first"),
    )
    return reduced.reset_index(drop=True)[INTERVAL_COLUMNS]


def split_generic_utrs(utrs: pd.DataFrame, cds: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """Assign generic UTR rows to 5' or 3' by position relative to the transcript CDS."""
    if utrs.empty or cds.empty:
        empty = utrs.iloc[0:0]
        return {FEATURE_UTR5: empty, FEATURE_UTR3: empty}

    bounds = cds.groupby("transcript_id").agg(cds_start=("start", "min"), cds_end=("end", "max"))
    merged = utrs.merge(bounds, left_on="transcript_id", right_index=True, how="inner")
    on_minus = merged["strand"] == STRAND_MINUS
    five = (~on_minus & (merged["end"] < merged["cds_start"])) | (
        on_minus & (merged["start"] > merged["cds_end"])
    )
    return {FEATURE_UTR5: merged.loc[five], FEATURE_UTR3: merged.loc[~five]}


def transcript_introns(exons: pd.DataFrame) -> pd.DataFrame:
    """Gaps between consecutive exons of each transcript."""
    if exons.empty:
        return pd.DataFrame(columns=INTERVAL_COLUMNS)
    ordered = exons.sort_values(["transcript_id", "start"])
    prev_end = ordered.groupby("transcript_id")["end"].shift()
    introns = pd.DataFrame(
        {
            "chrom": ordered["chrom"],
            "start": prev_end + 1,
            "end": ordered["start"] - 1,
            "strand": ordered["strand"],
        }
    ).dropna(subset=["start"])
    introns = introns.loc[introns["end"] >= introns["start"]]
    return introns.astype({"start": "int64", "end": "int64"})


def _interval_set(df: pd.DataFrame, name_column=None) -> IntervalSet:
    return IntervalSet.from_frame(df.reset_index(drop=True), name_column=name_column)


def build_annotation(
    gtf: pd.DataFrame, feature_order: Sequence[str] = DEFAULT_FEATURE_ORDER
) -> ReferenceAnnotation:
    """Build the reference collections from a parsed GTF table."""
    unknown = [f for f in feature_order if f not in DEFAULT_FEATURE_ORDER]
    if unknown or len(set(feature_order)) != len(feature_order) or not feature_order:
        raise ConfigurationError(
            f"feature_order must list distinct features out of {DEFAULT_FEATURE_ORDER}, "
            f"got {list(feature_order)}"
        )

    gtf = keep_standard_chromosomes(gtf)
    exons = gtf.loc[gtf["feature"] == "exon"]
    cds = gtf.loc[gtf["feature"].isin(CDS_FEATURES)]

    genes = gtf.loc[gtf["feature"] == "gene"].dropna(subset=["gene_id"])
    if genes.empty:
        genes = (
            exons.dropna(subset=["gene_id"])
            .groupby("gene_id", sort=False)
            .agg(chrom=("chrom", "first"), start=("start", "min"), end=("end", "max"), strand=("strand", "first"))
            .reset_index()
        )
    genes = genes.drop_duplicates(subset="gene_id")

    generic = split_generic_utrs(gtf.loc[gtf["feature"] == GENERIC_UTR], cds)
    frames = {
        FEATURE_UTR5: pd.concat(
            [gtf.loc[gtf["feature"].isin(UTR5_FEATURES)], generic[FEATURE_UTR5]], ignore_index=True
        ),
        FEATURE_UTR3: pd.concat(
            [gtf.loc[gtf["feature"].isin(UTR3_FEATURES)], generic[FEATURE_UTR3]], ignore_index=True
        ),
        FEATURE_CDS: cds,
        FEATURE_INTRON: transcript_introns(exons),
    }
    gene_feats = FeatureSets(
        [(name, _interval_set(reduce_intervals(frames[name]))) for name in feature_order]
    )

    unique_exons = exons[INTERVAL_COLUMNS].drop_duplicates()
    junct_start = unique_exons.assign(end=unique_exons["start"])
    junct_end = unique_exons.assign(start=unique_exons["end"])
    junctions = FeatureSets(
        [
            (JUNCTION_START, _interval_set(junct_start)),
            (JUNCTION_END, _interval_set(junct_end)),
        ]
    )

    annotation = ReferenceAnnotation(
        genes=_interval_set(genes[INTERVAL_COLUMNS + ["gene_id"]], name_column="gene_id"),
        gene_feats=gene_feats,
        junctions=junctions,
    )
    logger.info(
        f"Reference annotation: {len(annotation.genes):,} genes, "
        + ", ".join(f"{name}={len(s):,}" for name, s in gene_feats.items())
        + f", {len(unique_exons):,} exons"
    )
    return annotation


def load_annotation(
    gtf_path: Union[str, Path], feature_order: Sequence[str] = DEFAULT_FEATURE_ORDER
) -> ReferenceAnnotation:
    """Load a GTF file and prepare the features needed for circRNA annotation."""
    path = Path(gtf_path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")
    return build_annotation(read_gtf(path), feature_order=feature_order)

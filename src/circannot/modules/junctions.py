"""
junctions - does each circRNA boundary reuse a known linear splice site?

Boundaries are overlapped with the annotated exon start and end points. The
two boolean results are combined into ``junct.known``; single-sided hits are
named by transcript orientation, so the same genomic side reads ``5pr`` on
the plus strand and ``3pr`` on the minus strand.
"""

from __future__ import annotations

import pandas as pd

from circannot.constants import (
    JUNCT_3PR,
    JUNCT_5PR,
    JUNCT_BOTH,
    JUNCT_NONE,
    JUNCTION_NULL,
    MODE_PRECEDENCE,
    STRAND_MINUS,
)
from circannot.core.intervals import FeatureSets
from circannot.core.overlap import annotate_ranges
from circannot.modules.circ_loader import to_interval_set
from circannot.utils.column_standards import JUNCTION_BOOKKEEPING, ColumnStandard as C
from circannot.utils.logging import get_logger

logger = get_logger("junctions")


def classify_junction(start_known: bool, end_known: bool, strand: str) -> str:
    if start_known and end_known:
        return JUNCT_BOTH
    if not start_known and not end_known:
        return JUNCT_NONE
    if start_known:
        return JUNCT_3PR if strand == STRAND_MINUS else JUNCT_5PR
    return JUNCT_5PR if strand == STRAND_MINUS else JUNCT_3PR


def annotate_junctions(
    circs: pd.DataFrame,
    junctions: FeatureSets,
    null_label: str = JUNCTION_NULL,
    strand_aware: bool = True,
) -> pd.DataFrame:
    """Add ``junct.known`` (both/none/5pr/3pr) to the candidates."""
    queries = to_interval_set(circs)
    start_labels = annotate_ranges(
        queries.starts(), junctions, mode=MODE_PRECEDENCE, null_label=null_label, strand_aware=strand_aware
    )
    end_labels = annotate_ranges(
        queries.ends(), junctions, mode=MODE_PRECEDENCE, null_label=null_label, strand_aware=strand_aware
    )

    out = circs.copy()
    out["annotated_start_junction"] = [label != null_label for label in start_labels]
    out["annotated_end_junction"] = [label != null_label for label in end_labels]
    out[C.JUNCT_KNOWN] = [
        classify_junction(s, e, strand)
        for s, e, strand in zip(
            out["annotated_start_junction"], out["annotated_end_junction"], out[C.STRAND]
        )
    ]
    logger.debug(f"Known junctions: {out[C.JUNCT_KNOWN].value_counts().to_dict()}")
    return out.drop(columns=JUNCTION_BOOKKEEPING)

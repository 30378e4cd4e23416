"""
flanks - gene feature at the two boundaries of each circRNA candidate.

Each boundary gets the highest-precedence gene sub-feature it overlaps
(UTR5 > UTR3 > CDS > intron by default). Differing boundary labels are
combined in transcript orientation: ``start:end`` on the plus strand,
``end:start`` on the minus strand.
"""

from __future__ import annotations

import pandas as pd

from circannot.constants import FEATURE_NULL, FEATURE_SEP, MODE_PRECEDENCE, OVERLAP_ANY, STRAND_MINUS
from circannot.core.intervals import FeatureSets
from circannot.core.overlap import annotate_ranges
from circannot.modules.circ_loader import to_interval_set
from circannot.utils.column_standards import FLANK_BOOKKEEPING, ColumnStandard as C
from circannot.utils.logging import get_logger

logger = get_logger("flanks")


def compose_feature(feat_start: str, feat_end: str, strand: str) -> str:
    """Combine boundary features 5'-to-3' along the transcript."""
    if feat_start == feat_end:
        return feat_start
    if strand == STRAND_MINUS:
        return f"{feat_end}{FEATURE_SEP}{feat_start}"
    return f"{feat_start}{FEATURE_SEP}{feat_end}"


def annotate_flanks(
    circs: pd.DataFrame,
    gene_feats: FeatureSets,
    null_label: str = FEATURE_NULL,
    strand_aware: bool = True,
) -> pd.DataFrame:
    """Add a ``feature`` column from the gene sub-features at both boundaries."""
    queries = to_interval_set(circs)
    feat_start = annotate_ranges(
        queries.starts(),
        gene_feats,
        mode=MODE_PRECEDENCE,
        null_label=null_label,
        strand_aware=strand_aware,
        overlap_type=OVERLAP_ANY,
    )
    feat_end = annotate_ranges(
        queries.ends(),
        gene_feats,
        mode=MODE_PRECEDENCE,
        null_label=null_label,
        strand_aware=strand_aware,
        overlap_type=OVERLAP_ANY,
    )

    out = circs.copy()
    out["feat_start"] = feat_start
    out["feat_end"] = feat_end
    out[C.FEATURE] = [
        compose_feature(s, e, strand)
        for s, e, strand in zip(out["feat_start"], out["feat_end"], out[C.STRAND])
    ]
    logger.debug(f"Feature classes: {out[C.FEATURE].value_counts().to_dict()}")
    return out.drop(columns=FLANK_BOOKKEEPING)

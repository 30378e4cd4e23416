"""
host_genes - assign a host gene to every circRNA candidate.

Both boundaries of a candidate are looked up separately: a gene "hits" a
boundary when it fully contains that base. The genes containing both
boundaries decide the host; when there are none, the number of boundaries
hit and the number of distinct genes touching either boundary decide
between ``intergenic``, ``no_single_host``, ``ambiguous`` and a single gene.

Candidates with no boundary inside a gene are called ``intergenic`` even
when a gene lies entirely between the two boundaries.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from circannot.constants import (
    HOST_AMBIGUOUS,
    HOST_INTERGENIC,
    HOST_NO_SINGLE,
    OVERLAP_WITHIN,
)
from circannot.core.intervals import FeatureSets, IntervalSet
from circannot.core.overlap import find_overlaps
from circannot.modules.circ_loader import to_interval_set
from circannot.utils.column_standards import HOST_BOOKKEEPING, ColumnStandard as C
from circannot.utils.logging import get_logger

logger = get_logger("host_genes")

GENE_SEP = ","


def _boundary_genes(
    boundaries: IntervalSet, genes: IntervalSet, strand_aware: bool
) -> List[List[str]]:
    """Distinct gene ids containing each boundary, in discovery order."""
    hits = find_overlaps(boundaries, genes, overlap_type=OVERLAP_WITHIN, strand_aware=strand_aware)
    per_boundary: List[List[str]] = [[] for _ in range(len(boundaries))]
    for qidx, group in hits.groupby("query", sort=False):
        per_boundary[qidx] = [str(name) for name in pd.unique(group["name"])]
    return per_boundary


def resolve_host(
    start_genes: List[str], end_genes: List[str]
) -> Tuple[str, int, str, int]:
    """Classify one candidate from the genes hit at each boundary.

    Returns:
        (host, hitcnt, hitgenes, host_candidates)
    """
    shared = [g for g in start_genes if g in end_genes]
    hitcnt = len(shared)
    hitgenes = GENE_SEP.join(shared)
    union = list(dict.fromkeys(start_genes + end_genes))
    host_candidates = len(union)
    start_hit = bool(start_genes)
    end_hit = bool(end_genes)

    if hitcnt == 1:
        host = shared[0]
    elif hitcnt > 1:
        host = HOST_AMBIGUOUS
    elif not start_hit and not end_hit:
        host = HOST_INTERGENIC
    elif start_hit and end_hit:
        host = HOST_NO_SINGLE
    elif host_candidates > 1:
        host = HOST_AMBIGUOUS
    else:
        host = union[0]
    return host, hitcnt, hitgenes, host_candidates


def annotate_host_genes(
    circs: pd.DataFrame,
    genes: IntervalSet,
    strand_aware: bool = True,
    keep_bookkeeping: bool = False,
) -> pd.DataFrame:
    """Add a ``host`` column to the candidates.

    Args:
        circs: Candidates with 1-based closed coordinates
        genes: Gene bodies named by gene identifier
        strand_aware: Only genes on the candidate's strand can host it
        keep_bookkeeping: Keep the per-boundary hit columns (debugging)

    Returns:
        Copy of ``circs`` with ``host``
    """
    if isinstance(genes, FeatureSets):
        # a single tier of genes
        genes = genes[genes.names[0]]

    queries = to_interval_set(circs)
    start_genes = _boundary_genes(queries.starts(), genes, strand_aware)
    end_genes = _boundary_genes(queries.ends(), genes, strand_aware)

    # per-call lookup from candidate row to boundary gene lists
    hits: Dict[int, Tuple[List[str], List[str]]] = {
        i: (start_genes[i], end_genes[i]) for i in range(len(queries))
    }

    out = circs.copy()
    out["start.hit"] = [bool(hits[i][0]) for i in range(len(out))]
    out["end.hit"] = [bool(hits[i][1]) for i in range(len(out))]
    out["starts"] = [GENE_SEP.join(hits[i][0]) or np.nan for i in range(len(out))]
    out["ends"] = [GENE_SEP.join(hits[i][1]) or np.nan for i in range(len(out))]

    resolved = [resolve_host(*hits[i]) for i in range(len(out))]
    out[C.HOST] = [r[0] for r in resolved]
    out["hitcnt"] = [r[1] for r in resolved]
    out["hitgenes"] = [r[2] for r in resolved]
    out["host.candidates"] = [r[3] for r in resolved]

    if len(out):
        counts = out[C.HOST].value_counts()
        pseudo = sum(int(counts.get(k, 0)) for k in (HOST_AMBIGUOUS, HOST_NO_SINGLE, HOST_INTERGENIC))
        logger.info(
            f"Host genes: {len(out) - pseudo} single, "
            f"{int(counts.get(HOST_AMBIGUOUS, 0))} ambiguous, "
            f"{int(counts.get(HOST_NO_SINGLE, 0))} no single host, "
            f"{int(counts.get(HOST_INTERGENIC, 0))} intergenic"
        )

    if keep_bookkeeping:
        return out
    return out.drop(columns=HOST_BOOKKEEPING)

"""Interval overlap annotation with precedence-ranked labels.

Every query interval is overlapped against the concatenation of the
reference collections. Each hit records the collection it came from and that
collection's rank (its declaration position). Hits are stable-sorted by rank,
so ties between hits of the same rank keep their discovery order.

``precedence`` keeps the first hit per query; ``all`` joins every distinct
label of a query in discovery order. Queries without hits get ``null_label``.
"""

from __future__ import annotations

from typing import List, Optional, Union

import pandas as pd

from circannot.constants import (
    ANNOTATION_MODES,
    FEATURE_SEP,
    JUNCTION_NULL,
    LABEL_BY_COLLECTION,
    LABEL_SOURCES,
    MODE_PRECEDENCE,
    OVERLAP_ANY,
    OVERLAP_TYPES,
)
from circannot.core.intervals import FeatureSets, IntervalSet
from circannot.exceptions import ConfigurationError, IntervalTypeError
from circannot.utils.logging import get_logger

logger = get_logger("overlap")

HIT_COLUMNS = ["query", "subject", "collection", "name", "rank"]

Reference = Union[FeatureSets, IntervalSet]


def _as_feature_sets(reference: Reference) -> FeatureSets:
    if isinstance(reference, FeatureSets):
        return reference
    if isinstance(reference, IntervalSet):
        return FeatureSets.single("reference", reference)
    raise IntervalTypeError(
        f"Annotating ranges need to be FeatureSets or IntervalSet, got {type(reference).__name__}"
    )


def find_overlaps(
    queries: IntervalSet,
    reference: Reference,
    overlap_type: str = OVERLAP_ANY,
    strand_aware: bool = True,
) -> pd.DataFrame:
    """Return one row per (query, reference interval) overlap, in discovery order.

    Columns: ``query`` (query index), ``subject`` (index into the
    concatenation of all collections), ``collection``, ``name`` (the
    reference interval's own name) and ``rank``.
    """
    if not isinstance(queries, IntervalSet):
        raise IntervalTypeError(
            f"Ranges to be annotated need to be an IntervalSet, got {type(queries).__name__}"
        )
    feature_sets = _as_feature_sets(reference)
    if overlap_type not in OVERLAP_TYPES:
        raise ConfigurationError(
            f"overlap_type may only be one of {OVERLAP_TYPES}, got {overlap_type!r}"
        )

    offsets = []
    offset = 0
    for _, interval_set in feature_sets.items():
        offsets.append(offset)
        offset += len(interval_set)

    rows = []
    for qidx, query in enumerate(queries):
        for rank, (collection, interval_set) in enumerate(feature_sets.items()):
            for sidx in interval_set.query(query, overlap_type=overlap_type, strand_aware=strand_aware):
                rows.append((qidx, offsets[rank] + sidx, collection, interval_set[sidx].name, rank))

    hits = pd.DataFrame(rows, columns=HIT_COLUMNS)
    logger.debug(
        f"{len(hits)} overlaps ({overlap_type}) between {len(queries)} queries "
        f"and {len(feature_sets)} reference collections"
    )
    return hits


def collapse_overlaps(
    hits: pd.DataFrame,
    n_queries: int,
    mode: str = MODE_PRECEDENCE,
    null_label: Optional[str] = JUNCTION_NULL,
    sep: str = FEATURE_SEP,
    label_by: str = LABEL_BY_COLLECTION,
) -> List[Optional[str]]:
    """Reduce overlap rows to one label per query.

    ``hits`` must be in discovery order; ranks decide, discovery order breaks ties.
    """
    if mode not in ANNOTATION_MODES:
        raise ConfigurationError(f"type may only be {' and '.join(ANNOTATION_MODES)}, got {mode!r}")
    if label_by not in LABEL_SOURCES:
        raise ConfigurationError(f"label_by may only be one of {LABEL_SOURCES}, got {label_by!r}")

    annot: List[Optional[str]] = [null_label] * n_queries
    if hits.empty:
        return annot

    column = "collection" if label_by == LABEL_BY_COLLECTION else "name"
    ordered = hits.sort_values("rank", kind="stable")

    if mode == MODE_PRECEDENCE:
        first = ordered.drop_duplicates(subset="query", keep="first")
        for qidx, label in zip(first["query"], first[column]):
            annot[qidx] = label
    else:
        # discovery order, not rank order
        for qidx, group in hits.groupby("query", sort=False):
            labels = [str(x) for x in pd.unique(group[column])]
            annot[qidx] = sep.join(labels)
    return annot


def annotate_ranges(
    queries: IntervalSet,
    reference: Reference,
    mode: str = MODE_PRECEDENCE,
    null_label: Optional[str] = JUNCTION_NULL,
    strand_aware: bool = True,
    overlap_type: str = OVERLAP_ANY,
    sep: str = FEATURE_SEP,
    label_by: str = LABEL_BY_COLLECTION,
) -> List[Optional[str]]:
    """Annotate each query with the label of the reference it overlaps.

    Args:
        queries: Intervals to annotate
        reference: Precedence-ordered FeatureSets, or a single IntervalSet
        mode: ``precedence`` (one label) or ``all`` (every label joined by ``sep``)
        null_label: Label for queries without any overlap
        strand_aware: Only same-strand (or unstranded) intervals overlap
        overlap_type: ``any`` or ``within`` (query contained in the reference)
        sep: Separator for ``all`` mode
        label_by: ``collection`` labels by collection name, ``name`` by the
            reference interval's own name

    Returns:
        One label per query, in query order

    Raises:
        IntervalTypeError: queries/reference are not interval collections
        ConfigurationError: unsupported mode, overlap type or label source
    """
    if mode not in ANNOTATION_MODES:
        raise ConfigurationError(f"type may only be {' and '.join(ANNOTATION_MODES)}, got {mode!r}")
    if label_by not in LABEL_SOURCES:
        raise ConfigurationError(f"label_by may only be one of {LABEL_SOURCES}, got {label_by!r}")
    hits = find_overlaps(queries, reference, overlap_type=overlap_type, strand_aware=strand_aware)
    return collapse_overlaps(
        hits, len(queries), mode=mode, null_label=null_label, sep=sep, label_by=label_by
    )


__all__ = ["find_overlaps", "collapse_overlaps", "annotate_ranges"]

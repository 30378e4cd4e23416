"""Genomic intervals and reference feature collections.

Coordinates are 1-based and closed on both ends. Each ``IntervalSet`` keeps
one ``intervaltree.IntervalTree`` per chromosome (half-open internally, hence
the ``end + 1`` when indexing) and is never mutated after construction, so
sets can be shared between annotation calls.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd
from intervaltree import IntervalTree

from circannot.constants import (
    OVERLAP_ANY,
    OVERLAP_TYPES,
    OVERLAP_WITHIN,
    STRAND_NONE,
    VALID_STRANDS,
)
from circannot.exceptions import (
    ConfigurationError,
    FileFormatError,
    IntervalTypeError,
    InvalidIntervalError,
)


def normalize_strand(strand) -> str:
    """Map '.', '' and None to the unstranded token '*'."""
    if strand is None or (isinstance(strand, float) and pd.isna(strand)):
        return STRAND_NONE
    strand = str(strand).strip()
    if strand in ("", "."):
        return STRAND_NONE
    return strand


def strand_compatible(a: str, b: str) -> bool:
    """Unstranded intervals are compatible with both strands."""
    return a == b or a == STRAND_NONE or b == STRAND_NONE


@dataclass(frozen=True)
class GenomicInterval:
    """A closed genomic interval [start, end] on one strand."""

    chrom: str
    start: int
    end: int
    strand: str = STRAND_NONE
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "strand", normalize_strand(self.strand))
        if self.strand not in VALID_STRANDS:
            raise InvalidIntervalError(f"Invalid strand {self.strand!r} for {self.chrom}:{self.start}-{self.end}")
        try:
            start = int(self.start)
            end = int(self.end)
        except (TypeError, ValueError) as exc:
            raise InvalidIntervalError(
                f"Non-integer coordinates {self.start!r}-{self.end!r} on {self.chrom}"
            ) from exc
        if start < 0:
            raise InvalidIntervalError(f"Negative start {start} on {self.chrom}")
        if start > end:
            raise InvalidIntervalError(f"start > end: {self.chrom}:{start}-{end}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def point_start(self) -> "GenomicInterval":
        """Width-1 interval at the leftmost base."""
        return GenomicInterval(self.chrom, self.start, self.start, self.strand, self.name)

    def point_end(self) -> "GenomicInterval":
        """Width-1 interval at the rightmost base."""
        return GenomicInterval(self.chrom, self.end, self.end, self.strand, self.name)

    def __str__(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}({self.strand})"


class IntervalSet:
    """Immutable ordered collection of GenomicIntervals with per-chromosome trees.

    The position of an interval in the set is its discovery order: overlap
    queries report hits sorted by it.
    """

    def __init__(self, intervals: Iterable[GenomicInterval] = ()):
        items = tuple(intervals)
        by_chrom: Dict[str, List[Tuple[int, int, int]]] = defaultdict(list)
        for idx, iv in enumerate(items):
            if not isinstance(iv, GenomicInterval):
                raise IntervalTypeError(
                    f"IntervalSet entries must be GenomicInterval, got {type(iv).__name__}"
                )
            by_chrom[iv.chrom].append((iv.start, iv.end + 1, idx))
        self._intervals = items
        self._trees = {chrom: IntervalTree.from_tuples(rows) for chrom, rows in by_chrom.items()}

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        name_column: Optional[str] = None,
        chrom_column: str = "chrom",
        start_column: str = "start",
        end_column: str = "end",
        strand_column: Optional[str] = "strand",
    ) -> "IntervalSet":
        """Build a set from a DataFrame with 1-based closed coordinates."""
        required = [chrom_column, start_column, end_column]
        if name_column:
            required.append(name_column)
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise FileFormatError(f"Missing interval columns: {missing}")

        chroms = df[chrom_column].astype(str).tolist()
        starts = df[start_column].tolist()
        ends = df[end_column].tolist()
        if strand_column and strand_column in df.columns:
            strands = df[strand_column].tolist()
        else:
            strands = [STRAND_NONE] * len(df)
        names = df[name_column].astype(str).tolist() if name_column else [None] * len(df)

        return cls(
            GenomicInterval(c, s, e, st, n)
            for c, s, e, st, n in zip(chroms, starts, ends, strands, names)
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "chrom": [iv.chrom for iv in self._intervals],
                "start": [iv.start for iv in self._intervals],
                "end": [iv.end for iv in self._intervals],
                "strand": [iv.strand for iv in self._intervals],
                "name": [iv.name for iv in self._intervals],
            }
        )

    def starts(self) -> "IntervalSet":
        """Width-1 intervals at every interval's start."""
        return IntervalSet(iv.point_start() for iv in self._intervals)

    def ends(self) -> "IntervalSet":
        """Width-1 intervals at every interval's end."""
        return IntervalSet(iv.point_end() for iv in self._intervals)

    def query(
        self,
        interval: GenomicInterval,
        overlap_type: str = OVERLAP_ANY,
        strand_aware: bool = True,
    ) -> List[int]:
        """Return indices of intervals hit by ``interval``, in set order.

        ``any`` reports every interval sharing at least one base; ``within``
        reports intervals that fully contain ``interval``.
        """
        if overlap_type not in OVERLAP_TYPES:
            raise ConfigurationError(
                f"overlap_type must be one of {OVERLAP_TYPES}, got {overlap_type!r}"
            )
        tree = self._trees.get(interval.chrom)
        if tree is None:
            return []

        candidates = tree.overlap(interval.start, interval.end + 1)
        if overlap_type == OVERLAP_WITHIN:
            candidates = [
                node for node in candidates
                if node.begin <= interval.start and node.end - 1 >= interval.end
            ]

        hits = []
        for node in candidates:
            if strand_aware and not strand_compatible(interval.strand, self._intervals[node.data].strand):
                continue
            hits.append(node.data)
        hits.sort()
        return hits

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[GenomicInterval]:
        return iter(self._intervals)

    def __getitem__(self, idx: int) -> GenomicInterval:
        return self._intervals[idx]

    def __repr__(self) -> str:
        return f"IntervalSet({len(self)} intervals on {len(self._trees)} chromosomes)"


class FeatureSets:
    """Named reference collections in precedence order (Reference Feature Sets).

    Accepts an ordered mapping (``dict``/``OrderedDict``) or a sequence of
    ``(name, IntervalSet)`` pairs. Declaration order is precedence order:
    the first collection has rank 0.
    """

    def __init__(self, sets):
        if isinstance(sets, (IntervalSet, str, bytes, set, frozenset)):
            raise ConfigurationError(
                f"Reference feature sets need an ordered mapping or a list of (name, set) pairs, "
                f"got {type(sets).__name__}"
            )
        if isinstance(sets, Mapping):
            pairs = list(sets.items())
        elif isinstance(sets, (list, tuple)):
            pairs = []
            for entry in sets:
                if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                    raise ConfigurationError(
                        f"Expected (name, IntervalSet) pairs, got {entry!r}"
                    )
                pairs.append(tuple(entry))
        else:
            raise ConfigurationError(
                f"Unsupported reference feature set shape: {type(sets).__name__}"
            )

        if not pairs:
            raise ConfigurationError("Reference feature sets must not be empty")

        seen = set()
        for name, interval_set in pairs:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Feature set names must be non-empty strings, got {name!r}")
            if name in seen:
                raise ConfigurationError(f"Duplicate feature set name: {name}")
            seen.add(name)
            if not isinstance(interval_set, IntervalSet):
                raise IntervalTypeError(
                    f"Feature set '{name}' must be an IntervalSet, got {type(interval_set).__name__}"
                )

        self._pairs: Tuple[Tuple[str, IntervalSet], ...] = tuple(pairs)
        self._ranks = {name: rank for rank, (name, _) in enumerate(self._pairs)}

    @classmethod
    def single(cls, name: str, interval_set: IntervalSet) -> "FeatureSets":
        return cls([(name, interval_set)])

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._pairs]

    def rank(self, name: str) -> int:
        return self._ranks[name]

    def items(self) -> Sequence[Tuple[str, IntervalSet]]:
        return self._pairs

    def __getitem__(self, name: str) -> IntervalSet:
        return self._pairs[self._ranks[name]][1]

    def __contains__(self, name: object) -> bool:
        return name in self._ranks

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}={len(s)}" for name, s in self._pairs)
        return f"FeatureSets({inner})"

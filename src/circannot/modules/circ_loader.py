"""
circ_loader - load find_circ junction tables into candidate DataFrames.

find_circ reports junctions in BED convention (0-based start). Tables may
mix linear (``norm_*``) and circular (``circ_*``) junctions; linear reads
that share a splice site with a circRNA boundary become its linear support,
from which the circular-to-linear ratio is computed.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, List, Union

import numpy as np
import pandas as pd

from circannot.constants import VALID_STRANDS
from circannot.core.intervals import IntervalSet, normalize_strand
from circannot.exceptions import FileFormatError
from circannot.utils.column_standards import (
    FIND_CIRC_COLUMNS,
    REQUIRED_COLUMNS,
    ColumnStandard as C,
    normalize_chrom,
)
from circannot.utils.logging import LogTemplates, get_logger

logger = get_logger("circ_loader")

LINEAR_PREFIX = "norm_"

# Optional numeric find_circ columns; parsed when present, left as text otherwise
_OPTIONAL_NUMERIC = [C.N_UNIQ, "uniq_bridges", "best_qual_left", "best_qual_right"]

Source = Union[str, Path, IO[str]]


def _read_raw(source: Source) -> pd.DataFrame:
    try:
        raw = pd.read_csv(source, sep="\t", header=None, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise FileFormatError(f"Junction table is empty: {source}") from exc
    except pd.errors.ParserError as exc:
        raise FileFormatError(f"Malformed junction table {source}: {exc}") from exc

    if raw.empty:
        raise FileFormatError(f"Junction table is empty: {source}")

    first = [str(x) for x in raw.iloc[0].tolist()]
    if first[0].startswith("#"):
        names = [x.lstrip("#").strip() for x in first]
        raw = raw.iloc[1:].reset_index(drop=True)
    else:
        ncol = raw.shape[1]
        names = FIND_CIRC_COLUMNS[:ncol] + [
            f"col{i}" for i in range(len(FIND_CIRC_COLUMNS) + 1, ncol + 1)
        ]
    raw.columns = names
    return raw


def _to_int(df: pd.DataFrame, column: str) -> pd.Series:
    try:
        values = pd.to_numeric(df[column], errors="raise")
    except (ValueError, TypeError) as exc:
        raise FileFormatError(f"Column '{column}' must be numeric: {exc}") from exc
    if values.isna().any():
        raise FileFormatError(f"Column '{column}' has missing values")
    if not np.all(np.equal(np.mod(values, 1), 0)):
        raise FileFormatError(f"Column '{column}' must hold integers")
    return values.astype(np.int64)


def read_circs(source: Source) -> pd.DataFrame:
    """Load a find_circ junction table.

    Args:
        source: Path or open handle of a tab-delimited table. A first line
            starting with '#' is taken as the header; otherwise find_circ's
            positional column names are used.

    Returns:
        One row per circular junction, with ``lin_start``/``lin_end``
        linear support columns. Coordinates stay 0-based as in the file.

    Raises:
        FileFormatError: Missing required columns or invalid coordinates
    """
    df = validate_circs(_read_raw(source), source=source)
    logger.info(LogTemplates.FILE_LOADED.format(count=len(df), path=source))
    return df


def validate_circs(df: pd.DataFrame, source: object = "junction table") -> pd.DataFrame:
    """Check and normalize a junction table already held in memory.

    Coerces coordinates and read counts to integers, prefixes chromosome
    names with ``chr`` and moves ``norm_*`` linear junctions into the
    ``lin_start``/``lin_end`` support of the circular rows. The table is
    modified in place; pass a copy to keep the original.

    Raises:
        FileFormatError: Missing required columns or invalid coordinates
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise FileFormatError(f"{source} is missing required columns: {missing}")

    for column in (C.START, C.END, C.N_READS):
        df[column] = _to_int(df, column)
    for column in _OPTIONAL_NUMERIC + [C.LIN_START, C.LIN_END]:
        if column in df.columns:
            converted = pd.to_numeric(df[column], errors="coerce")
            if not converted.isna().any():
                df[column] = converted

    df[C.CHROM] = df[C.CHROM].map(normalize_chrom)
    df[C.STRAND] = df[C.STRAND].map(normalize_strand)

    bad_strand = ~df[C.STRAND].isin(VALID_STRANDS)
    if bad_strand.any():
        raise FileFormatError(
            f"Invalid strand values: {sorted(df.loc[bad_strand, C.STRAND].unique())}"
        )
    if (df[C.START] < 0).any():
        raise FileFormatError(f"Negative start coordinates in {source}")
    bad = df[C.START] > df[C.END]
    if bad.any():
        row = df.loc[bad].iloc[0]
        raise FileFormatError(
            f"{int(bad.sum())} junctions with start > end, e.g. "
            f"{row[C.CHROM]}:{row[C.START]}-{row[C.END]}"
        )

    return _attach_linear_support(df)


def _attach_linear_support(df: pd.DataFrame) -> pd.DataFrame:
    """Split linear from circular junctions and sum linear reads per circ boundary."""
    is_linear = df[C.NAME].astype(str).str.startswith(LINEAR_PREFIX)
    if C.LIN_START in df.columns and C.LIN_END in df.columns:
        return df.loc[~is_linear].reset_index(drop=True)

    circs = df.loc[~is_linear].reset_index(drop=True)
    linear = df.loc[is_linear]

    if linear.empty:
        circs[C.LIN_START] = 0
        circs[C.LIN_END] = 0
        return circs

    # A linear intron ending at the circ start shares its acceptor,
    # one starting at the circ end shares its donor.
    keys = [C.CHROM, C.STRAND]
    acceptors = (
        linear.groupby(keys + [C.END], as_index=False)[C.N_READS]
        .sum()
        .rename(columns={C.END: C.START, C.N_READS: C.LIN_START})
    )
    donors = (
        linear.groupby(keys + [C.START], as_index=False)[C.N_READS]
        .sum()
        .rename(columns={C.START: C.END, C.N_READS: C.LIN_END})
    )
    circs = circs.merge(acceptors, on=keys + [C.START], how="left")
    circs = circs.merge(donors, on=keys + [C.END], how="left")
    circs[C.LIN_START] = circs[C.LIN_START].fillna(0).astype(np.int64)
    circs[C.LIN_END] = circs[C.LIN_END].fillna(0).astype(np.int64)

    logger.debug(f"Separated {int(is_linear.sum())} linear from {len(circs)} circular junctions")
    return circs


def circ_lin_ratio(circs: pd.DataFrame) -> pd.DataFrame:
    """Add ``lin_reads`` and the circular-to-linear ``ratio``.

    ``lin_reads`` is the larger of the two boundary supports. Zero linear
    support gives ``inf`` (``NaN`` if the circ has no reads either).
    """
    out = circs.copy()
    for column in (C.LIN_START, C.LIN_END):
        if column not in out.columns:
            out[column] = 0
    lin_start = pd.to_numeric(out[C.LIN_START], errors="coerce").fillna(0)
    lin_end = pd.to_numeric(out[C.LIN_END], errors="coerce").fillna(0)
    out[C.LIN_READS] = np.maximum(lin_start, lin_end)
    out[C.RATIO] = out[C.N_READS].astype(float) / out[C.LIN_READS].astype(float)
    return out


def filter_circs(circs: pd.DataFrame, min_reads: int = 0) -> pd.DataFrame:
    """Keep candidates with at least ``min_reads`` junction reads (0 keeps all)."""
    if min_reads <= 0:
        return circs
    keep = circs[C.N_READS] >= min_reads
    kept = int(keep.sum())
    removed = len(circs) - kept
    percent = 100.0 * kept / len(circs) if len(circs) else 0.0
    logger.info(LogTemplates.FILTERING_STATS.format(kept=kept, removed=removed, percent=percent))
    return circs.loc[keep].reset_index(drop=True)


def candidate_ids(circs: pd.DataFrame) -> pd.Series:
    """Identity strings ``chrom:start-end``."""
    return (
        circs[C.CHROM].astype(str)
        + ":"
        + circs[C.START].astype(str)
        + "-"
        + circs[C.END].astype(str)
    )


def to_interval_set(circs: pd.DataFrame) -> IntervalSet:
    """Candidates (1-based closed coordinates) as an IntervalSet named by identity."""
    frame = circs[[C.CHROM, C.START, C.END, C.STRAND]].copy()
    frame[C.NAME] = candidate_ids(circs).to_numpy()
    return IntervalSet.from_frame(frame, name_column=C.NAME)


def write_circs(circs: pd.DataFrame, path: Union[str, Path], one_based: bool = True) -> Path:
    """Write candidates as a '#'-headed BED-like table readable by ``read_circs``.

    Args:
        circs: Candidate table
        path: Output file
        one_based: ``circs`` holds 1-based starts (pipeline output) that are
            shifted back to BED convention
    """
    path = Path(path)
    out = circs.copy()
    if one_based:
        out[C.START] = out[C.START] - 1
    columns: List[str] = list(out.columns)
    header = ["#" + columns[0]] + columns[1:]
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, sep="\t", index=False, header=header)
    logger.info(LogTemplates.FILE_CREATED.format(path=path, count=len(out)))
    return path

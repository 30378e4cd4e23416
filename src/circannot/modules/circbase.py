"""
circbase - cross-reference candidates with a circBase SQL mirror.

Tables follow circBase's naming: ``<organism>_<assembly>_circles`` holds the
circRNA catalogue (``circID, chrom, pos_start, pos_end, strand``), and every
``*_stats`` table lists the studies (``expID``) and samples behind one
organism/assembly pair.
"""

from __future__ import annotations

import re
from typing import Optional

import pandas as pd
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Engine

from circannot.config import CircBaseConfig
from circannot.exceptions import ConfigurationError, RemoteLookupError
from circannot.modules.circ_loader import candidate_ids
from circannot.utils.column_standards import ColumnStandard as C
from circannot.utils.logging import LogTemplates, get_logger

logger = get_logger("circbase")

SERVICE_NAME = "circBase"
STATS_SUFFIX = "_stats"
STUDY_COLUMNS = ["organism", "assembly", "study", "sample"]

_IDENTIFIER = re.compile(r"^[A-Za-z0-9]+$")


def _identifier(value: str, what: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise ConfigurationError(f"Invalid circBase {what}: {value!r}")
    return value


def create_circbase_engine(circbase_config: Optional[CircBaseConfig] = None) -> Engine:
    """SQLAlchemy engine for the configured circBase mirror."""
    cfg = circbase_config or CircBaseConfig()
    if not cfg.drivername.startswith("sqlite") and not cfg.host:
        raise ConfigurationError("circbase.host is required")
    url = URL.create(
        drivername=cfg.drivername,
        username=cfg.user,
        password=cfg.password,
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
    )
    return create_engine(url)


def circles_table(organism: str, assembly: str) -> str:
    return f"{_identifier(organism, 'organism')}_{_identifier(assembly, 'assembly')}_circles"


def get_ids(
    circs: pd.DataFrame,
    organism: str,
    assembly: str,
    engine: Engine,
    one_based: bool = True,
) -> pd.DataFrame:
    """Add circBase ``circID`` to candidates matched on ``chrom:start-end``.

    Args:
        circs: Candidate table
        organism: circBase organism code (``hsa``, ``mmu``, ...)
        assembly: Genome assembly (``hg19``, ...)
        engine: Connection to the circBase mirror
        one_based: ``circs`` holds 1-based starts (annotated output); circBase
            stores BED starts

    Returns:
        Copy of ``circs`` with ``circID`` (missing where circBase has no entry)
    """
    table = circles_table(organism, assembly)
    query = text(f"SELECT circID, chrom, pos_start, pos_end, strand FROM {table}")
    try:
        with engine.connect() as conn:
            catalogue = pd.read_sql(query, conn)
    except Exception as exc:
        raise RemoteLookupError(f"{SERVICE_NAME} query on {table} failed: {exc}") from exc

    catalogue["id"] = (
        catalogue["chrom"].astype(str)
        + ":"
        + catalogue["pos_start"].astype(str)
        + "-"
        + catalogue["pos_end"].astype(str)
    )
    catalogue = catalogue.drop_duplicates(subset="id")[["id", C.CIRC_ID]]

    keys = circs.copy()
    if one_based:
        keys[C.START] = keys[C.START] - 1
    out = circs.copy()
    out["id"] = candidate_ids(keys).to_numpy()
    out = out.merge(catalogue, on="id", how="left")
    out.index = circs.index

    logger.info(
        LogTemplates.LOOKUP_DONE.format(
            service=SERVICE_NAME, resolved=int(out[C.CIRC_ID].notna().sum()), count=len(out)
        )
    )
    return out.drop(columns="id")


def get_studies_list(
    engine: Engine,
    organism: Optional[str] = None,
    assembly: Optional[str] = None,
    study: Optional[str] = None,
    sample: Optional[str] = None,
) -> pd.DataFrame:
    """List (organism, assembly, study, sample) available in circBase.

    Raises:
        RemoteLookupError: No study matches the filters, or the query failed
    """
    try:
        tables = [t for t in inspect(engine).get_table_names() if t.endswith(STATS_SUFFIX)]
        frames = []
        with engine.connect() as conn:
            for table in sorted(tables):
                parts = table.split("_")
                if len(parts) != 3 or not all(_IDENTIFIER.match(p) for p in parts[:2]):
                    logger.debug(f"Skipping table {table!r}: not named <organism>_<assembly>_stats")
                    continue
                orgn, asm = parts[0], parts[1]
                chunk = pd.read_sql(
                    text(f"SELECT DISTINCT expID, sample FROM {table} ORDER BY expID, sample"),
                    conn,
                )
                chunk.columns = ["study", "sample"]
                chunk.insert(0, "assembly", asm)
                chunk.insert(0, "organism", orgn)
                frames.append(chunk)
    except Exception as exc:
        raise RemoteLookupError(f"{SERVICE_NAME} study listing failed: {exc}") from exc

    out = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=STUDY_COLUMNS)
    for column, value in zip(STUDY_COLUMNS, (organism, assembly, study, sample)):
        if value is not None:
            out = out.loc[out[column] == value]

    if out.empty:
        raise RemoteLookupError(
            f"No {SERVICE_NAME} data for organism {organism}, assembly {assembly}, "
            f"study {study}, and sample {sample}."
        )
    return out.reset_index(drop=True)[STUDY_COLUMNS]

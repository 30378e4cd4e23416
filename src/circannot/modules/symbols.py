"""
symbols - resolve Ensembl gene ids to gene symbols through BioMart.

Queries the BioMart ``martservice`` endpoint of the Ensembl host configured
for the assembly's release. Pseudo-hosts and empty ids are never sent.
Ids BioMart does not know come back as ``None``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import pandas as pd
import requests

from circannot.config import Config, LookupConfig
from circannot.constants import PSEUDO_HOSTS
from circannot.exceptions import ConfigurationError, RemoteLookupError
from circannot.utils.logging import LogTemplates, get_logger

logger = get_logger("symbols")

MARTSERVICE_PATH = "/biomart/martservice"
SERVICE_NAME = "Ensembl BioMart"

QUERY_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<!DOCTYPE Query>"
    '<Query virtualSchemaName="default" formatter="TSV" header="0" '
    'uniqueRows="1" datasetConfigVersion="0.6">'
    '<Dataset name="{dataset}" interface="default">'
    '<Filter name="ensembl_gene_id" value="{ids}"/>'
    '<Attribute name="ensembl_gene_id"/>'
    '<Attribute name="external_gene_name"/>'
    "</Dataset>"
    "</Query>"
)


def _queryable(gene_ids: Iterable) -> List[str]:
    ids = []
    for gene_id in gene_ids:
        if gene_id is None or (isinstance(gene_id, float) and pd.isna(gene_id)):
            continue
        gene_id = str(gene_id)
        if not gene_id or gene_id in PSEUDO_HOSTS:
            continue
        ids.append(gene_id)
    return list(dict.fromkeys(ids))


def build_query(dataset: str, gene_ids: List[str]) -> str:
    """BioMart XML query mapping ``gene_ids`` to external gene names."""
    return QUERY_TEMPLATE.format(dataset=dataset, ids=",".join(gene_ids))


def parse_response(text: str) -> Dict[str, Optional[str]]:
    """Parse a headerless two-column TSV BioMart answer."""
    if text.lstrip().startswith("Query ERROR"):
        raise RemoteLookupError(f"{SERVICE_NAME} rejected the query: {text.strip()[:200]}")
    symbols: Dict[str, Optional[str]] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t")
        gene_id = fields[0].strip()
        symbol = fields[1].strip() if len(fields) > 1 else ""
        if symbols.get(gene_id):
            continue
        symbols[gene_id] = symbol or None
    return symbols


def _endpoint(release: str, lookup: LookupConfig) -> str:
    try:
        host = lookup.ensembl_hosts[release]
    except KeyError:
        raise ConfigurationError(
            f"No Ensembl host configured for release {release!r}; known: {sorted(lookup.ensembl_hosts)}"
        ) from None
    return host.rstrip("/") + MARTSERVICE_PATH


def _dataset(organism: str, lookup: LookupConfig) -> str:
    try:
        return f"{lookup.organism2dataset[organism]}_gene_ensembl"
    except KeyError:
        raise ConfigurationError(
            f"No BioMart dataset configured for organism {organism!r}"
        ) from None


def resolve_symbols(
    gene_ids: Iterable,
    organism: str,
    release: str = "current",
    lookup_config: Optional[LookupConfig] = None,
    session: Optional[requests.Session] = None,
) -> Dict[str, Optional[str]]:
    """Map Ensembl gene ids to symbols.

    Args:
        gene_ids: Ids to resolve; pseudo-hosts, NaN and empty ids are skipped
        organism: Organism code (``hsa``, ``mmu``, ...)
        release: Key into ``lookup_config.ensembl_hosts``
        lookup_config: Hosts, datasets, timeout and chunk size
        session: Optional requests session (connection reuse, testing)

    Returns:
        ``{gene_id: symbol or None}`` for every queried id

    Raises:
        RemoteLookupError: HTTP failure or a BioMart error answer
    """
    lookup = lookup_config or LookupConfig()
    ids = _queryable(gene_ids)
    if not ids:
        return {}

    url = _endpoint(release, lookup)
    dataset = _dataset(organism, lookup)
    http = session or requests
    logger.info(LogTemplates.LOOKUP_START.format(service=SERVICE_NAME, count=len(ids)))

    symbols: Dict[str, Optional[str]] = {}
    for offset in range(0, len(ids), lookup.chunk_size):
        chunk = ids[offset : offset + lookup.chunk_size]
        try:
            response = http.post(
                url, data={"query": build_query(dataset, chunk)}, timeout=lookup.timeout
            )
        except requests.RequestException as exc:
            raise RemoteLookupError(f"{SERVICE_NAME} request to {url} failed: {exc}") from exc
        if not response.ok:
            raise RemoteLookupError(
                f"{SERVICE_NAME} request to {url} failed (error {response.status_code})",
                status_code=response.status_code,
            )
        found = parse_response(response.text)
        for gene_id in chunk:
            symbols[gene_id] = found.get(gene_id)

    resolved = sum(1 for s in symbols.values() if s)
    logger.info(
        LogTemplates.LOOKUP_DONE.format(service=SERVICE_NAME, resolved=resolved, count=len(ids))
    )
    return symbols


class BiomartSymbolResolver:
    """Callable resolver bound to an organism, release and lookup settings."""

    def __init__(
        self,
        organism: str,
        release: str = "current",
        lookup_config: Optional[LookupConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.organism = organism
        self.release = release
        self.lookup_config = lookup_config or LookupConfig()
        self.session = session

    @classmethod
    def from_config(cls, config: Config) -> "BiomartSymbolResolver":
        return cls(config.organism, config.release, config.lookup)

    def __call__(self, gene_ids: Iterable) -> Dict[str, Optional[str]]:
        return resolve_symbols(
            gene_ids, self.organism, self.release, self.lookup_config, session=self.session
        )

"""Annotation pipeline orchestrator for circannot."""

from __future__ import annotations

import copy
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Union

import pandas as pd

from circannot.config import Config
from circannot.core.pipeline_types import PIPELINE_STEPS, PipelineStep
from circannot.exceptions import CircAnnotError, PipelineError
from circannot.modules.annotation_db import ReferenceAnnotation
from circannot.modules.circ_loader import (
    Source,
    circ_lin_ratio,
    filter_circs,
    read_circs,
    validate_circs,
)
from circannot.modules.flanks import annotate_flanks
from circannot.modules.host_genes import annotate_host_genes
from circannot.modules.junctions import annotate_junctions
from circannot.modules.symbols import BiomartSymbolResolver
from circannot.utils.column_standards import ColumnStandard as C
from circannot.utils.logging import LogTemplates, get_logger

SymbolResolver = Callable[[Iterable[str]], Dict[str, Optional[str]]]


class AnnotationPipeline:
    """Run the annotation steps over one candidate table.

    Each call to :meth:`run` starts from scratch; the reference annotation is
    only read. A failing step stops the call and its exception propagates
    unchanged, with ``stage`` set to the step name for package errors.
    """

    STEPS = PIPELINE_STEPS

    def __init__(
        self,
        config: Config,
        annotation: Union[ReferenceAnnotation, dict],
        symbol_resolver: Optional[SymbolResolver] = None,
    ):
        self.config = config
        self.logger = get_logger("pipeline")
        self.annotation = ReferenceAnnotation.coerce(annotation)
        self.config.validate_annotation()

        if symbol_resolver is None and config.lookup.resolve_symbols:
            symbol_resolver = BiomartSymbolResolver.from_config(config)
        self.symbol_resolver = symbol_resolver

        self.circs: Optional[pd.DataFrame] = None
        self._source: Optional[Union[Source, pd.DataFrame]] = None

    def run(self, source: Union[Source, pd.DataFrame]) -> pd.DataFrame:
        """Annotate the candidates in ``source`` (file, handle or loaded table)."""
        self._source = source
        self.circs = None
        total = len(self.STEPS)
        pipeline_start = time.time()

        for number, step in enumerate(self.STEPS, 1):
            label = step.display_name or step.name
            if step.skip_condition and getattr(self, step.skip_condition)():
                self.logger.debug(f"Skipping step {number}: {label}")
                continue

            self.logger.info(
                LogTemplates.STEP_START.format(step_name=label, step_number=number, total=total)
            )
            step_start = time.time()
            try:
                self._execute_step(step)
            except Exception as exc:
                if isinstance(exc, CircAnnotError) and exc.stage is None:
                    exc.stage = step.name
                self.logger.error(LogTemplates.STEP_FAILURE.format(step_name=label, error=exc))
                raise
            self.logger.info(
                LogTemplates.STEP_SUCCESS.format(step_name=label, duration=time.time() - step_start)
            )

        self.logger.info(
            f"Annotated {len(self.circs):,} candidates in {time.time() - pipeline_start:.2f}s"
        )
        result, self.circs, self._source = self.circs, None, None
        return result

    def _execute_step(self, step: PipelineStep) -> None:
        method = getattr(self, f"_step_{step.name}", None)
        if method is None:
            raise PipelineError(f"Unknown pipeline step: {step.name}")
        method()

    # ---- skip conditions ----
    def _skip_filter(self) -> bool:
        return self.config.annotation.min_reads <= 0

    # ---- steps ----
    def _step_load(self) -> None:
        if isinstance(self._source, pd.DataFrame):
            self.circs = validate_circs(self._source.copy(), source="input table")
        else:
            self.circs = read_circs(self._source)

    def _step_filter(self) -> None:
        self.circs = filter_circs(self.circs, self.config.annotation.min_reads)

    def _step_ratio(self) -> None:
        self.circs = circ_lin_ratio(self.circs)

    def _step_coordinates(self) -> None:
        self.circs[C.START] = self.circs[C.START] + 1

    def _step_host_genes(self) -> None:
        self.circs = annotate_host_genes(
            self.circs, self.annotation.genes, strand_aware=self.config.annotation.strand_aware
        )

    def _step_flanks(self) -> None:
        self.circs = annotate_flanks(
            self.circs,
            self.annotation.gene_feats,
            null_label=self.config.annotation.feature_null,
            strand_aware=self.config.annotation.strand_aware,
        )

    def _step_junctions(self) -> None:
        self.circs = annotate_junctions(
            self.circs,
            self.annotation.junctions,
            null_label=self.config.annotation.junction_null,
            strand_aware=self.config.annotation.strand_aware,
        )

    def _step_symbols(self) -> None:
        if self.symbol_resolver is None:
            self.circs[C.GENE] = None
            return
        symbols = self.symbol_resolver(self.circs[C.HOST].unique().tolist())
        self.circs[C.GENE] = [symbols.get(host) for host in self.circs[C.HOST]]


def annotate_circs(
    circs_bed: Union[Source, pd.DataFrame],
    annotation: Union[ReferenceAnnotation, dict],
    assembly: str,
    config: Optional[Config] = None,
    symbol_resolver: Optional[SymbolResolver] = None,
) -> pd.DataFrame:
    """Annotate find_circ candidates in one call.

    Args:
        circs_bed: find_circ table (path, handle or DataFrame in BED convention)
        annotation: Reference collections (see ``load_annotation``)
        assembly: Genome assembly, selects organism and Ensembl release
        config: Options; defaults are used when omitted
        symbol_resolver: Callable mapping gene ids to symbols; BioMart by default

    Returns:
        One row per candidate with 1-based starts and the annotation columns
    """
    cfg = copy.deepcopy(config) if config is not None else Config()
    cfg.assembly = assembly
    if isinstance(circs_bed, (str, Path)):
        cfg.input_file = Path(circs_bed)
    return AnnotationPipeline(cfg, annotation, symbol_resolver=symbol_resolver).run(circs_bed)

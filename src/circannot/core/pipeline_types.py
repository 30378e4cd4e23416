"""Shared pipeline types.

Kept free of heavy imports so step definitions can be read without loading
the annotators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class PipelineStep:
    """Represents a pipeline step."""

    name: str
    description: str
    display_name: Optional[str] = None
    # Name of a zero-argument pipeline method; the step is skipped when it returns True
    skip_condition: Optional[str] = None


# Step order of one annotation call
PIPELINE_STEPS: List[PipelineStep] = [
    PipelineStep("load", "Load find_circ junction table"),
    PipelineStep(
        "filter", "Apply read-count filter", skip_condition="_skip_filter"
    ),
    PipelineStep("ratio", "Compute circular-to-linear ratio"),
    PipelineStep("coordinates", "Convert BED starts to 1-based"),
    PipelineStep("host_genes", "Resolve host genes", display_name="host genes"),
    PipelineStep("flanks", "Classify boundary gene features"),
    PipelineStep("junctions", "Match known splice junctions"),
    PipelineStep("symbols", "Resolve gene symbols"),
]

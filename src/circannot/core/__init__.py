"""Core annotation functionality (circannot).

Import the pipeline from ``circannot.core.pipeline``.
"""

from circannot.core.intervals import FeatureSets, GenomicInterval, IntervalSet
from circannot.core.overlap import annotate_ranges
from circannot.core.pipeline_types import PIPELINE_STEPS, PipelineStep

__all__ = [
    "FeatureSets",
    "GenomicInterval",
    "IntervalSet",
    "PIPELINE_STEPS",
    "PipelineStep",
    "annotate_ranges",
]

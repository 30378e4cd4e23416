"""Utility functions (circannot)."""

from circannot.utils.logging import get_logger, setup_logging
from circannot.utils.column_standards import ColumnStandard, normalize_chrom

__all__ = ["get_logger", "setup_logging", "ColumnStandard", "normalize_chrom"]

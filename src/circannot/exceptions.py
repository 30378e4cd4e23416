"""Custom exceptions for circannot."""

from typing import Optional


class CircAnnotError(Exception):
    """Base exception for all circannot errors."""

    def __init__(self, message: str = "", stage: Optional[str] = None):
        """Initialize with an optional pipeline stage.

        Args:
            message: Error message
            stage: Name of the annotation step that failed, set by the pipeline
        """
        super().__init__(message)
        self.stage = stage


class ConfigurationError(CircAnnotError):
    """Raised when configuration or a call option is invalid."""

    pass


class FileFormatError(CircAnnotError):
    """Raised when an input table is malformed or misses required columns."""

    pass


class InvalidIntervalError(FileFormatError):
    """Raised when interval coordinates or strand are invalid."""

    pass


class IntervalTypeError(CircAnnotError, TypeError):
    """Raised when a query or reference set is not a valid interval collection."""

    pass


class RemoteLookupError(CircAnnotError):
    """Raised when a remote lookup (BioMart, circBase) fails."""

    def __init__(self, message="", stage=None, status_code=None):
        super().__init__(message, stage=stage)
        self.status_code = status_code


class PipelineError(CircAnnotError):
    """Raised when the annotation pipeline itself is misconfigured."""

    pass

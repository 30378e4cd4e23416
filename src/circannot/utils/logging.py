"""Logging setup for circannot.

All package loggers live under the ``circannot`` namespace; the CLI calls
:func:`setup_logging` once and modules fetch children with :func:`get_logger`.
"""

from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


LOGGER_NAMESPACE = "circannot"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3


def parse_level(level: Union[int, str]) -> int:
    """Translate a level name ("info", "DEBUG") or number into a logging level."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> None:
    """Attach console and optional rotating file handlers to the package logger.

    Args:
        level: Level name or number for console output
        log_file: Log file path; it always receives DEBUG records
        max_bytes: Rotation size of the log file
        backup_count: Rotated files kept next to ``log_file``

    Calling it again replaces the handlers. The root logger stays at WARNING
    so third-party library messages stay quiet.
    """
    level = parse_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    app_logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            app_logger.addHandler(file_handler)
        except OSError as exc:
            warnings.warn(f"Cannot write log file {log_file}: {exc}")

    app_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Child logger of the package namespace, e.g. ``circannot.flanks``."""
    base = logging.getLogger(LOGGER_NAMESPACE)
    return base.getChild(name)


class LogTemplates:
    """Message formats shared by the pipeline and lookup modules."""

    # steps
    STEP_START = "[{step_number}/{total}] {step_name}"
    STEP_SUCCESS = "Completed step: {step_name} in {duration:.2f}s"
    STEP_FAILURE = "Step {step_name} failed: {error}"

    # files
    FILE_CREATED = "Wrote {count:,} rows to {path}"
    FILE_LOADED = "Read {count:,} rows from {path}"

    FILTERING_STATS = "Kept {kept:,} candidates, dropped {removed:,} ({percent:.1f}% retained)"

    # remote services
    LOOKUP_START = "Querying {service} for {count:,} identifiers"
    LOOKUP_DONE = "{service} resolved {resolved:,}/{count:,} identifiers"

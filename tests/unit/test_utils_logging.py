"""Tests for logging utilities."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from circannot.utils.logging import LogTemplates, get_logger, parse_level, setup_logging


class TestSetupLogging:
    """Test cases for setup_logging."""

    def test_namespace_level_and_handlers(self):
        setup_logging(level="info")
        app_logger = logging.getLogger("circannot")
        assert app_logger.level == logging.INFO
        assert app_logger.propagate is False
        assert len(app_logger.handlers) == 1

    def test_repeated_calls_do_not_duplicate(self):
        setup_logging(level=logging.DEBUG)
        setup_logging(level=logging.DEBUG)
        assert len(logging.getLogger("circannot").handlers) == 1

    def test_log_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(level="DEBUG", log_file=log_file)
        handlers = logging.getLogger("circannot").handlers
        file_handlers = [h for h in handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        get_logger("test").debug("written to file")
        file_handlers[0].flush()
        assert "written to file" in log_file.read_text()

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            parse_level("chatty")


class TestGetLogger:
    """Test cases for get_logger."""

    def test_child_of_namespace(self):
        assert get_logger("pipeline").name == "circannot.pipeline"

    def test_templates_format(self):
        message = LogTemplates.STEP_SUCCESS.format(step_name="flanks", duration=1.234)
        assert message == "Completed step: flanks in 1.23s"
        assert "1,024" in LogTemplates.FILE_LOADED.format(count=1024, path="x.bed")

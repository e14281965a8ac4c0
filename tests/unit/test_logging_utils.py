#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_logging_utils.py
"""Unit tests for CLI logging setup."""

import logging

import pytest

from mdbridge.logging_utils import TRACE_FORMAT, configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way it was."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestResolveLevel:
    """Tests for resolve_level."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            ("DEBUG", logging.DEBUG),
            ("warning", logging.WARNING),
            (logging.ERROR, logging.ERROR),
            (None, logging.WARNING),
            ("bogus", logging.WARNING),
        ],
    )
    def test_levels(self, level, expected):
        """Test names, numbers and fallbacks."""
        assert resolve_level(level) == expected

    def test_custom_default(self):
        """Test the fallback level."""
        assert resolve_level(None, logging.INFO) == logging.INFO


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_handler(self):
        """Test a single stderr handler at the requested level."""
        root = configure_logging("INFO")
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO
        assert root.level == logging.INFO

    def test_repeated_calls_replace_handlers(self):
        """Test that handlers are not duplicated."""
        configure_logging("INFO")
        root = configure_logging("ERROR")
        assert len(root.handlers) == 1
        assert root.level == logging.ERROR

    def test_trace_format(self):
        """Test the trace formatter."""
        root = configure_logging(logging.DEBUG, trace_mode=True)
        assert root.handlers[0].formatter._fmt == TRACE_FORMAT

    def test_log_file(self, tmp_path):
        """Test writing records to a file."""
        log_file = tmp_path / "run.log"
        root = configure_logging("WARNING", log_file=str(log_file))
        logging.getLogger("mdbridge.test").warning("disk record")
        for handler in root.handlers:
            handler.flush()
        assert "WARNING: disk record" in log_file.read_text(encoding="utf-8")

    def test_file_level_lower_than_console(self, tmp_path):
        """Test that the file can capture more than stderr."""
        log_file = tmp_path / "run.log"
        root = configure_logging("WARNING", log_file=str(log_file), file_level="DEBUG")
        assert root.level == logging.DEBUG
        assert root.handlers[0].level == logging.WARNING
        logging.getLogger("mdbridge.test").debug("detail")
        for handler in root.handlers:
            handler.flush()
        assert "DEBUG: detail" in log_file.read_text(encoding="utf-8")

    def test_unwritable_log_file(self, tmp_path):
        """Test that a bad log path keeps stderr logging alive."""
        root = configure_logging("INFO", log_file=str(tmp_path / "missing" / "run.log"))
        assert len(root.handlers) == 1

"""
Logging & Clock Test Suite

Coverage:
  - terminal-safe log formatting of user supplied text
  - log format validation
  - manual clock monotonicity

Run with:
    pytest tests/test_logger_and_clock.py -v
"""

import logging
import logging.handlers
import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from collector_dao.governance.clock import ManualClock, SystemClock
from collector_dao.logger import (
    LogManager,
    TerminalSafeFormatter,
    configure_logging,
    get_logger,
)


class TestTerminalSafeFormatter:
    """Proposal descriptions cannot inject terminal escapes."""

    def test_strips_ansi(self):
        assert TerminalSafeFormatter.sanitize("\x1b[31mred\x1b[0m") == "red"

    def test_strips_control_chars(self):
        assert TerminalSafeFormatter.sanitize("a\x00b\rc\x07") == "abc"

    def test_keeps_newlines_and_tabs(self):
        assert TerminalSafeFormatter.sanitize("a\tb\nc") == "a\tb\nc"

    def test_format_sanitizes_record(self):
        formatter = TerminalSafeFormatter(fmt="%(message)s")
        record = logging.LogRecord(
            name="t", level=logging.INFO, pathname="", lineno=0,
            msg="Proposal #1: \x1b[2Jwipe", args=(), exc_info=None,
        )
        assert formatter.format(record) == "Proposal #1: wipe"


class TestLogManager:
    """Singleton configuration."""

    def test_singleton(self):
        assert LogManager() is LogManager()

    def test_get_logger_configures(self):
        logger = get_logger("collector_dao.tests")
        assert logger.name == "collector_dao.tests"
        assert LogManager().is_configured

    def test_valid_format_kept(self):
        fmt = "%(levelname)s - %(message)s"
        assert LogManager.validate_log_format(fmt) == fmt

    def test_invalid_format_falls_back(self, capsys):
        result = LogManager.validate_log_format("%(nope)s")
        assert result != "%(nope)s"
        assert "Bad LOG_FORMAT" in capsys.readouterr().err

    def test_empty_format_falls_back(self):
        assert LogManager.validate_log_format("") == LogManager.validate_log_format(None)
        assert LogManager.validate_log_format("")

    def test_configure_logging_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "dao.log"
        try:
            configure_logging(level="DEBUG", file_output=True, log_file=log_file)
            root = logging.getLogger()
            assert root.level == logging.DEBUG
            file_handlers = [h for h in root.handlers
                             if isinstance(h, logging.handlers.RotatingFileHandler)]
            assert len(file_handlers) == 1
            assert isinstance(file_handlers[0].formatter, TerminalSafeFormatter)
            get_logger("collector_dao.tests").info("Proposal #7 \x1b[31mqueued")
            for handler in file_handlers:
                handler.flush()
            assert "Proposal #7 queued" in log_file.read_text(encoding="utf-8")
        finally:
            configure_logging(file_output=False)


class TestClocks:
    """Ambient time sources."""

    def test_manual_clock_advance(self):
        clock = ManualClock(start=10)
        assert clock.advance(5) == 15
        assert clock.now() == 15

    def test_manual_clock_set(self):
        clock = ManualClock()
        clock.set(100)
        assert clock.now() == 100

    def test_manual_clock_never_goes_back(self):
        clock = ManualClock(start=50)
        with pytest.raises(ValueError):
            clock.set(49)
        with pytest.raises(ValueError):
            clock.advance(-1)
        assert clock.now() == 50

    def test_system_clock_is_monotonic_enough(self):
        clock = SystemClock()
        assert clock.now() <= clock.now()

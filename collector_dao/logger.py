"""
Collector DAO Logging
=====================

Process-wide log setup for the governance engine. Every module asks for its
logger through `get_logger(__name__)`; the first request installs the
handlers (rich console, optional rotating file) on the root logger.

Deployments that load a config file call `configure_logging` afterwards to
swap the import-time defaults for the configured level and file settings.
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "collector_dao.log"

DAO_THEME = Theme(
    {
        "dao.address":         "cyan",
        "dao.arrow":           "bold yellow",
        "dao.level_critical":  "bold red reverse",
        "dao.level_debug":     "bold dim",
        "dao.level_error":     "bold red",
        "dao.level_info":      "bold green",
        "dao.level_warning":   "bold yellow",
        "dao.logger_name":     "magenta",
        "dao.proposal":        "bold magenta",
        "dao.state":           "bold white",
        "dao.timestamp":       "bold cyan",
    }
)


# ══════════════════════════════════════════════════════════════════════
#  FORMATTING
# ══════════════════════════════════════════════════════════════════════


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips escape sequences and control bytes from formatted records.

    Descriptions and addresses in governance logs come from proposers, so a
    crafted description must not be able to recolour or rewrite the
    operator's terminal.
    """

    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # tab and newline survive
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        for pattern in (cls._ansi_escape_re, cls._carriage_return_re, cls._control_chars_re):
            text = pattern.sub("", text)
        return text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class DAOLogHighlighter(RegexHighlighter):
    """Colours addresses, proposal numbers and proposal states."""

    base_style = "dao."
    highlights = [
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<proposal>#\d+)",
        r"(?P<state>\b(PENDING|ACTIVE|DEFEATED|SUCCEEDED|EXECUTED)\b)",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


# ══════════════════════════════════════════════════════════════════════
#  MANAGER
# ══════════════════════════════════════════════════════════════════════


class LogManager:
    """
    Owns the root logger's handlers for the whole process.

    Only one instance ever exists. `configure` is idempotent until
    `reconfigure` clears the flag, so repeated `get_logger` calls never
    stack duplicate handlers.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True

    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Return `log_format` if it renders a sample record cleanly.

        An empty format, an unknown record attribute or a specifier left
        unexpanded in the output all fall back to the `LOG_FORMAT` default,
        with a one-line notice on stderr (logging is not up yet).
        """
        fallback = str(LOG_FORMAT.default())
        if not log_format:
            return fallback

        log_format = str(log_format)
        sample = logging.LogRecord(
            name="collector_dao", level=logging.INFO, pathname="", lineno=0,
            msg="sample", args=(), exc_info=None,
        )
        try:
            rendered = logging.Formatter(fmt=log_format).format(sample)
            if re.search(r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]", rendered):
                raise ValueError("Format specifiers not properly processed.")
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime('%Y-%m-%d %H:%M:%S')} - collector_dao.logger - "
                f"Bad LOG_FORMAT ({e}), falling back to default.",
                file=sys.stderr,
            )
            return fallback
        return log_format

    def _console_handler(self, formatter: logging.Formatter) -> logging.Handler:
        if not LOG_CONSOLE_HIGHLIGHTING:
            handler = logging.StreamHandler(sys.stdout)
        else:
            handler = RichHandler(
                console=Console(theme=DAO_THEME, highlight=False),
                highlighter=DAOLogHighlighter(),
                keywords=[],
                rich_tracebacks=True,
                omit_repeated_times=False,
                show_path=False,
                show_time=False,
                show_level=False,
                markup=False,
            )
        handler.setFormatter(formatter)
        return handler

    def _file_handler(self, formatter: logging.Formatter, path: Path) -> logging.Handler:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            filename=str(path),
            maxBytes=LOG_MAX_FILE_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        return handler

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install handlers on the root logger, once.

        Unset arguments come from the `.env` backed constants. Timestamps
        are rendered in UTC.
        """
        with self._lock:
            if self._configured:
                return

            level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)
            formatter = TerminalSafeFormatter(
                fmt=self.validate_log_format(LOG_FORMAT),
                datefmt=str(LOG_DATE_FORMAT) + " UTC",
            )
            formatter.converter = time.gmtime

            handlers = []
            if console_output:
                handlers.append(self._console_handler(formatter))
            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                handlers.append(self._file_handler(formatter, log_file or LOG_FILE_PATH))

            root_logger = logging.getLogger()
            root_logger.setLevel(level)
            root_logger.handlers.clear()
            for handler in handlers:
                handler.setLevel(level)
                root_logger.addHandler(handler)

            self._configured = True

    def reconfigure(self, **kwargs) -> None:
        with self._lock:
            self._configured = False
        self.configure(**kwargs)

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`, configuring the process defaults on first use."""
    return _manager.get_logger(name)


def configure_logging(
    level: Optional[str] = None,
    file_output: Optional[bool] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Apply deployment logging settings, replacing the import-time defaults."""
    _manager.reconfigure(log_level=level, file_output=file_output, log_file=log_file)

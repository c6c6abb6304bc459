"""
Logging configuration for Pisi Store.

Console output is colored on terminals; the optional log file is rotated
and may be written as JSON lines for machine consumption.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminal output."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(record.levelno, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def level_from_env(default: int = logging.INFO) -> int:
    """Read PISI_STORE_LOG_LEVEL (name or number), falling back to default."""
    value = os.environ.get("PISI_STORE_LOG_LEVEL", "")
    if not value:
        return default
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


_log_context: ContextVar[Dict[str, Any]] = ContextVar("pisistore_log_context", default={})


class ContextFilter(logging.Filter):
    """Copies the active LogContext onto records as ``extra_data``."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()
        if context and not hasattr(record, "extra_data"):
            record.extra_data = dict(context)
        return True


class LogContext:
    """
    Context manager that attaches key-value context to log records.

    The context lives in a context variable, so concurrent asyncio tasks
    each see only their own. Nested contexts merge with the outer one.

    Example:
        with LogContext(package="firefox", action="install"):
            logger.info("Running package action")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token: Optional[Token] = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, *args):
        _log_context.reset(self._token)
        self._token = None


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
):
    """
    Configure logging for Pisi Store.

    Args:
        level: Console logging level (default: INFO)
        log_file: Path to log file (optional)
        json_logs: Use JSON format for file logs
        log_dir: Directory for log files (creates pisi-store.log)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, logging.DEBUG) if (log_file or log_dir) else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.addFilter(ContextFilter())
    if sys.stderr.isatty():
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_file = log_dir / "pisi-store.log"

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(ContextFilter())
        if json_logs:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)

    # Quiet third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("PyQt6").setLevel(logging.WARNING)

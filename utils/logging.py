"""Logging utilities for the retrieval evaluation harness.

This module provides structured logging setup with proper formatting,
log levels, and optional file output.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from config import settings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Client libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "chromadb", "urllib3")


class StructuredFormatter(logging.Formatter):
    """Formatter producing ``[timestamp] LEVEL | logger.function | message`` lines.

    Timestamps are ISO 8601 in UTC. Level names are colored when writing to a
    terminal; file output never carries escape codes.
    """

    LINE_FORMAT = "[%(asctime)s] %(levelname)-8s | %(location)-30s | %(message)s"

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__(self.LINE_FORMAT)
        self.use_colors = use_colors

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy: the same record is also handed to the file handler
        record = logging.makeLogRecord(record.__dict__)

        if record.funcName and record.funcName != "<module>":
            record.location = f"{record.name}.{record.funcName}"
        else:
            record.location = record.name

        color = self.LEVEL_COLORS.get(record.levelno)
        if self.use_colors and color and sys.stdout.isatty():
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def setup_logging(
    log_level: LogLevel | None = None,
    log_file: str | Path | None = None,
    use_colors: bool = True,
) -> logging.Logger:
    """Set up logging configuration for the application.

    Args:
        log_level: Logging level (default from settings)
        log_file: Optional log file path (default from settings)
        use_colors: Whether to use colors in console output

    Returns:
        Configured root logger
    """
    if log_level is None:
        log_level = settings.log_level

    if log_file is None and settings.log_file:
        log_file = settings.log_file

    level = getattr(logging, log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(StructuredFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(StructuredFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Keep per-request client chatter out of evaluation output unless debugging
    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(f"Logging initialized at {log_level} level")
    if log_file:
        root_logger.info(f"Logging to file: {log_file}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

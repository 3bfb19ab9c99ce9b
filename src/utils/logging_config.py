"""
Logging configuration for the publishing pipeline (debug and verbose modes).
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import colorama
import structlog
from colorama import Fore, Style

colorama.init(autoreset=True)

ROOT_LOGGER_NAME = "ai_publisher"


class LogLevel(str, Enum):
    """Log level enumeration."""

    MINIMAL = "minimal"  # Only warnings and errors
    NORMAL = "normal"  # INFO, WARNING, ERROR
    DETAILED = "detailed"  # DEBUG and up
    FULL = "full"  # DEBUG with run/phase context on every line


class ColoredFormatter(logging.Formatter):
    """Colored log formatter."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        """Format log record with colors without mutating the shared record."""
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, '')}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class RunContextFilter(logging.Filter):
    """
    Copies the bound run context (work item id, phase) onto each record.

    The context lives in structlog contextvars, so concurrent pipeline runs in
    different threads each see their own values.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = structlog.contextvars.get_contextvars()
        record.work_item = context.get("work_item_id", "-")
        record.phase = context.get("phase", "-")
        return True


def setup_logging(
    level: LogLevel = LogLevel.NORMAL,
    log_to_file: bool = False,
    log_file: Optional[str] = None,
    verbose: bool = False,
    debug: bool = False,
) -> logging.Logger:
    """
    Setup logging configuration.

    Args:
        level: Log level
        log_to_file: Whether to log to file
        log_file: Log file path (default: logs/pipeline.log)
        verbose: Verbose mode flag
        debug: Debug mode flag

    Returns:
        Configured root logger for the pipeline
    """
    if debug or verbose or level in (LogLevel.DETAILED, LogLevel.FULL):
        log_level = logging.DEBUG
    elif level == LogLevel.NORMAL:
        log_level = logging.INFO
    else:  # MINIMAL
        log_level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.addFilter(RunContextFilter())

    if level == LogLevel.FULL:
        console_format = ColoredFormatter(
            "%(asctime)s | %(levelname)-8s | %(work_item)s | %(phase)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    elif debug or verbose:
        console_format = ColoredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s", datefmt="%H:%M:%S"
        )
    else:
        console_format = ColoredFormatter("%(levelname)-8s | %(message)s")

    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    if log_to_file:
        if log_file is None:
            log_file = "logs/pipeline.log"

        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.addFilter(RunContextFilter())
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(work_item)s | %(phase)s | "
                "%(name)s | %(funcName)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance under the pipeline namespace
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

"""
Logging infrastructure for afterorder.

Console output goes to stderr so that it never mixes with the error reports
printed on stdout. An optional rotating log file receives the detailed
format at DEBUG level.

Examples:
    >>> from afterorder.utils.logger import setup_logger, get_logger
    >>> setup_logger("afterorder", level="DEBUG", log_file=Path("logs/afterorder.log"))
    >>> logger = get_logger("afterorder.core.resolver")
    >>> logger.debug("Resolving entry point")
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from .path_utils import ensure_directory

# Root logger name for the package
LOGGER_NAME = "afterorder"

# Valid log levels
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Default log format strings
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(filename)s:%(lineno)d - %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation settings for file logs
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _level_value(level: str) -> int:
    """Translate a level name into its logging constant, validating it."""
    if level.upper() not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {VALID_LOG_LEVELS}")
    return getattr(logging, level.upper())


def setup_logger(
    name: str = LOGGER_NAME,
    level: str = "INFO",
    log_file: Path | None = None
) -> logging.Logger:
    """
    Configure and return a logger instance.

    Creates a logger with console output and optional file output.
    Calling it again for the same name updates the level without adding
    duplicate handlers.

    Args:
        name: Logger name (usually "afterorder").
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If provided, enables file logging.

    Returns:
        Configured logger instance.

    Raises:
        ValueError: If level is not a valid log level.

    Note:
        File logs use detailed format, console logs use simple format.
        Log files are rotated at 10MB with 5 backup files.
    """
    value = _level_value(level)

    logger = logging.getLogger(name)
    logger.setLevel(value)

    has_console_handler = any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.handlers.RotatingFileHandler)
        for h in logger.handlers
    )
    has_file_handler = any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)

    if not has_console_handler:
        add_console_handler(logger, level)
    else:
        for handler in logger.handlers:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                handler.setLevel(value)

    if log_file is not None and not has_file_handler:
        add_file_handler(logger, log_file, level="DEBUG")
        # File handler wants everything; console keeps its own threshold
        logger.setLevel(logging.DEBUG)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve existing logger or create default logger.

    Args:
        name: Logger name, e.g. "afterorder.core.dependency_graph".

    Returns:
        Logger instance.

    Note:
        Handlers live on the package logger only; children reach them via
        propagation. When nothing is configured yet the package logger gets
        a WARNING console handler so library use stays quiet until the CLI
        raises the level.
    """
    logger = logging.getLogger(name)

    if logger.hasHandlers():
        return logger

    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        setup_logger(LOGGER_NAME, level="WARNING")
        return logger

    return setup_logger(name, level="WARNING")


def set_log_level(logger: logging.Logger, level: str) -> None:
    """
    Change logging level dynamically.

    Args:
        logger: Logger instance to modify.
        level: New logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Raises:
        ValueError: If level is not valid.
    """
    logger.setLevel(_level_value(level))


def add_file_handler(
    logger: logging.Logger,
    log_file: Path,
    level: str = "DEBUG"
) -> None:
    """
    Add rotating file output handler to logger.

    Creates the log directory if it doesn't exist.

    Args:
        logger: Logger instance to modify.
        log_file: Path to log file.
        level: Logging level for file handler.

    Raises:
        ValueError: If level is not valid.
        OSError: If log directory cannot be created.
    """
    value = _level_value(level)

    ensure_directory(log_file.parent)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(value)
    file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))

    logger.addHandler(file_handler)


def add_console_handler(logger: logging.Logger, level: str = "INFO") -> None:
    """
    Add stderr console handler to logger.

    Args:
        logger: Logger instance to modify.
        level: Logging level for console handler.

    Raises:
        ValueError: If level is not valid.
    """
    value = _level_value(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(value)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    logger.addHandler(console_handler)

"""
Utility modules for path arithmetic and logging.

This package provides:
- Path primitives that build stable, root-relative file identities
- Logging infrastructure with console and rotating file output

Examples:
    >>> from afterorder.utils import join, setup_logger
    >>> identity = join("proj", "Main.fs")
    >>> logger = setup_logger("afterorder")
"""

from .path_utils import (
    # Type alias
    PathLike,
    # Identity arithmetic
    IDENTITY_SEPARATOR,
    to_identity_form,
    is_absolute,
    dirname,
    file_name,
    name_without_ext,
    resolve,
    relative,
    combine,
    join,
    # File system helpers
    normalize_path,
    ensure_directory,
)

from .logger import (
    # Logger setup
    setup_logger,
    get_logger,
    set_log_level,
    # Handler management
    add_file_handler,
    add_console_handler,
    # Constants
    LOGGER_NAME,
    VALID_LOG_LEVELS,
)

__all__ = [
    "PathLike",
    # Path utilities
    "IDENTITY_SEPARATOR",
    "to_identity_form",
    "is_absolute",
    "dirname",
    "file_name",
    "name_without_ext",
    "resolve",
    "relative",
    "combine",
    "join",
    "normalize_path",
    "ensure_directory",
    # Logger
    "setup_logger",
    "get_logger",
    "set_log_level",
    "add_file_handler",
    "add_console_handler",
    "LOGGER_NAME",
    "VALID_LOG_LEVELS",
]

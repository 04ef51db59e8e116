"""
Logging configuration using loguru.

Library code logs through ``from loguru import logger`` and never configures
sinks itself. The CLI calls setup_logging() once per invocation with values
from the ``logging.*`` config section.
"""

import os
import sys

from loguru import logger

CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def resolve_log_file(log_file: str | None, log_dir: str | None = None) -> str | None:
    """Place a bare or relative ``log_file`` under ``log_dir``."""
    if not log_file:
        return None
    path = os.path.expanduser(log_file)
    if log_dir and not os.path.isabs(path):
        path = os.path.join(os.path.expanduser(log_dir), path)
    return path


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_dir: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> str | None:
    """
    Replace loguru's sinks with stderr plus an optional rotating file.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: File sink path; relative paths land under ``log_dir``.
        log_dir: Directory for relative log files (``paths.log_dir``).
        rotation: Loguru rotation spec, e.g. "10 MB" or "1 day".
        retention: How long rotated files are kept.

    Returns:
        The resolved log file path, or None when only stderr is used.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    path = resolve_log_file(log_file, log_dir)
    if path:
        logger.add(path, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)
    return path

"""Logging configuration for the sticky notes store."""

import os
import sys
from pathlib import Path

from loguru import logger

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Send log records to stderr, and also to log_file when given.

    $STICKY_NOTES_LOG_LEVEL overrides the stderr level. The file sink always
    records DEBUG and rotates at 1 MB, keeping three old files.
    """
    logger.remove()
    level = os.environ.get("STICKY_NOTES_LOG_LEVEL") or ("DEBUG" if verbose else "INFO")
    logger.add(sys.stderr, level=level.upper(), format="{level.icon} {message}")
    if log_file is not None:
        logger.add(log_file, level="DEBUG", format=_FILE_FORMAT, rotation="1 MB", retention=3)

"""Logging sinks for command-line runs.

Library modules only call ``logger``; sinks are configured here, and only
by entry points such as the CLI.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}"
CONSOLE_FORMAT = "<level>{level:<8}</level> | {message}"


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Replace loguru's default sink with a console sink and an optional file sink.

    Args:
        level: Minimum level for the stderr sink.
        log_file: When given, every DEBUG-and-above message is also written
            here, rotating at 10 MB.
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper(), colorize=True)
    if log_file is not None:
        logger.add(str(log_file), format=FILE_FORMAT, level="DEBUG", rotation="10 MB")

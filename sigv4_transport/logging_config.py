"""Logging setup for applications and the CLI.

The library itself only creates loggers; handlers are left to the
application, which may call ``setup_logging`` once at startup.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.WARNING) -> None:
    """Configure root logging to stdout.

    Args:
        level: Logging level name (e.g. "DEBUG") or number
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

# ABOUTME: Configures the loguru sink shared by estimators, stores, and CLIs.
# ABOUTME: Library code only logs; entrypoints decide where output goes.

import sys

from loguru import logger

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with a single stderr sink."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


__all__ = ["configure_logging", "logger"]

# meteokit/log_config.py
"""Logging configuration for the meteokit library using Loguru.

Every meteokit module logs through the `logger` re-exported here, so an
application only has to call `configure_logging` once to choose the level
and destination of the whole fetch / mapping / OAuth pipeline.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", sink=sys.stderr):
    """
    Configures Loguru logger.

    Removes default handlers and adds a new one with the specified level and sink.

    Args:
        level: The minimum logging level (e.g., "TRACE", "DEBUG", "WARNING").
        sink: The output sink (e.g., sys.stderr, "meteokit.log").
    """
    logger.remove()
    logger.add(
        sink,
        level=level.upper(),
        format=LOG_FORMAT,
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=False,
    )
    logger.debug(f"Loguru logger configured with level={level.upper()} writing to {sink}")


__all__ = ["LOG_FORMAT", "configure_logging", "logger"]

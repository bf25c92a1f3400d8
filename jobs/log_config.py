"""
Logging configuration for the scheduler process.

Configures loguru sinks with rotation and retention.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging() -> None:
    """Configure stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info("Starting distribution engine...")

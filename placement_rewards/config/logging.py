"""
Logging configuration.

Sets up loguru sinks for workers and scripts.
"""

import sys

from loguru import logger

from placement_rewards.config.settings import settings


def setup_logging() -> None:
    """Configure loguru with stderr and rotating file sinks."""
    logger.remove()
    logger.configure(extra={"service": "-"})
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[service]}</cyan> | "
            "<level>{message}</level>"
        ),
    )
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

"""
Logging configuration
"""
import sys

from loguru import logger

from ..config import Settings, get_settings


def setup_logger(settings: Settings | None = None):
    """Configure logger with appropriate settings"""
    settings = settings or get_settings()
    logger.remove()  # Remove default handler

    # Console logging
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=settings.log_level,
    )

    # File logging
    if settings.log_dir:
        logger.add(
            f"{settings.log_dir}/storefront_insights_{{time:YYYY-MM-DD}}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
        )

    return logger


# Modules import this handle; the entry point decides when to call setup_logger()
log = logger

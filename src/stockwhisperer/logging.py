"""Centralized logging configuration using loguru."""

import sys

from loguru import logger

from stockwhisperer.config import settings

# Replace the default DEBUG handler with one at the configured level
logger.remove()
logger.add(sys.stderr, level=settings.log_level.upper(), colorize=True)

__all__ = ["logger"]

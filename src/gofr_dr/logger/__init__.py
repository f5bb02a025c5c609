"""
GOFR DR Logger Module

Usage:
    from gofr_dr.logger import get_logger, create_logger

    logger = get_logger("gofr-dr")
    logger.info("Backup created", backup_id=backup_id)

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is derived from the logger name (e.g., GOFR_DR for "gofr-dr")
"""

import logging
import os
from typing import Optional

from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix ("gofr-dr" -> "GOFR_DR")."""
    return name.upper().replace("-", "_").replace(".", "_")


def create_logger(
    name: str = "gofr-dr",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Create a logger, filling unset parameters from the environment.

    Args:
        name: Logger name (e.g., "gofr-dr")
        level: Logging level (defaults to INFO or {PREFIX}_LOG_LEVEL)
        log_file: Optional file path ({PREFIX}_LOG_FILE)
        json_format: JSON output ({PREFIX}_LOG_JSON)
    """
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{env_prefix}_LOG_FILE")

    if json_format is None:
        json_format = os.environ.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = "gofr-dr") -> Logger:
    """Get a logger configured purely from environment variables."""
    return create_logger(name=name)


__all__ = [
    "Logger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
]

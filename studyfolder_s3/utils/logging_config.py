"""
Structured logging setup for the study folder client.
"""

import logging
from typing import Optional

import structlog

from .env_config import AppSettings


def configure_logging(
    level: str = "INFO",
    format_json: bool = True,
    include_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for storage operations.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        format_json: Whether to format logs as JSON
        include_timestamp: Whether to include timestamps
    """
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="ISO"))

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


def configure_logging_from_settings(settings: Optional[AppSettings] = None) -> None:
    """Configure logging from environment settings."""
    if settings is None:
        from .env_config import get_settings

        settings = get_settings()
    configure_logging(**settings.get_logging_config())

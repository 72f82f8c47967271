"""Logging configuration.

Routes structlog through the standard library logger and renders JSON
lines with ISO timestamps.
"""

import logging
import sys

import structlog

from catalog_codegen.infrastructure.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure structlog for the application.

    Args:
        level: Log level name. Defaults to the configured level.
    """
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

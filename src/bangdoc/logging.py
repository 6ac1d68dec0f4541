"""Structured logging with structlog."""

import logging
import sys
from functools import lru_cache

import structlog

from bangdoc.config import get_settings

# Library use without configure_logging() stays quiet below WARNING.
if not structlog.is_configured():
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))


def configure_logging(level: str | None = None) -> None:
    """Configure structlog; logs go to stderr so stdout stays a clean document."""
    settings = get_settings()
    level = (level or settings.log_level).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.log_format == "json":
        formatter = structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    else:
        formatter = structlog.stdlib.ProcessorFormatter(processor=structlog.dev.ConsoleRenderer(colors=False))

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@lru_cache(maxsize=100)
def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)

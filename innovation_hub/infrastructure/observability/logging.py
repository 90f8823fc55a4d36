"""Structured logging configuration with structlog.

Production renders one JSON object per entry for log aggregation;
development renders colored console lines. Both carry the ISO timestamp,
level, event name, correlation_id (when set) and bound context.

Log Entry Format (production):
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "vote_cast",
        "correlation_id": "0190...",
        "suggestion_id": "s1",
        ...additional context
    }

Usage:
    from innovation_hub.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")

    import structlog
    log = structlog.get_logger(__name__)
    log.info("vote_cast", suggestion_id="s1")
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from innovation_hub.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Environments that get machine-readable output
JSON_ENVIRONMENTS = frozenset({"production", "staging"})


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog for the hub.

    Should be called once at startup (build_hub does it).

    Args:
        environment: "production"/"staging" for JSON output, anything
            else for console output.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment in JSON_ENVIRONMENTS:
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

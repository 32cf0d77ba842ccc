"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# RFC 3339, UTC, second precision
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

LOG_FORMATS = ("console", "json")


def setup_logging(level: str = "info", fmt: str = "console") -> None:
    """Configure structlog for console or JSON output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]

"""structlog setup shared by the REST server and the CLI.

The server logs JSON lines to stderr; the CLI prefers the console renderer so
that diagnostics stay readable next to the JSON graph it prints on stdout.
"""

from __future__ import annotations

import logging
import sys

import structlog

_RENDERERS = ("json", "console")


def setup_logging(level: str = "info", renderer: str = "json") -> None:
    """Configure structlog processors and level filtering for this process."""
    if renderer not in _RENDERERS:
        raise ValueError(f"Invalid log renderer: {renderer}. Must be one of {_RENDERERS}")
    log_level = getattr(logging, level.upper(), logging.INFO)

    final_processor: structlog.types.Processor
    if renderer == "console":
        final_processor = structlog.dev.ConsoleRenderer(colors=False)
    else:
        final_processor = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            final_processor,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]

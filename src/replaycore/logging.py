"""replaycore.logging

Structured logging via structlog.

Library modules call `get_logger(__name__)` and log snake_case event names
with key/value fields. Nothing is configured on import; hosts either bring
their own structlog configuration or call `configure_logging()`.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List

import structlog


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Install a minimal structlog pipeline writing to stderr."""
    log_level = logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

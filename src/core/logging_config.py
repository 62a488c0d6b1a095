"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Log lines go to stderr so stdout stays free for command output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import MetaconvConfigError

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and the minimum event level.

    Args:
        level: One of ``debug``, ``info``, ``warning`` or ``error``.

    Raises:
        MetaconvConfigError: If the level name is unknown.
    """
    numeric_level = parse_log_level(level)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)


def parse_log_level(level: str) -> int:
    """Map a level name onto the stdlib numeric level."""
    numeric_level = _LEVELS.get(level.strip().lower())
    if numeric_level is None:
        raise MetaconvConfigError(
            f"Invalid log level '{level}'. Use one of: {', '.join(_LEVELS)}."
        )
    return numeric_level


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    """Bind each new logger to the current ``sys.stderr`` stream."""
    return structlog.PrintLogger(file=sys.stderr)

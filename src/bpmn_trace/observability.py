"""Structured logging for bpmn-trace.

Modules log through ``structlog.get_logger(__name__)``; this module only
configures where those records go and how they are rendered.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for bpmn-trace.

    Log records always go to stderr so that stdout only carries the
    report summary.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Raises:
        ValueError: If log_level is not a known level name.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=True)
    """
    level_name = log_level.upper()
    if level_name not in LOG_LEVELS:
        msg = f"Unknown log level: {log_level}"
        raise ValueError(msg)

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name),
        force=True,
    )


__all__ = [
    "LOG_LEVELS",
    "configure_logging",
]

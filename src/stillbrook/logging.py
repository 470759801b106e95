"""Logging configuration for stillbrook with structlog."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import structlog

LOG_LEVEL_ENV = "STILLBROOK_LOG_LEVEL"


def resolve_level(level: str | None = None) -> str:
    """Pick the effective level: explicit argument, then environment, then INFO."""
    value = level or os.environ.get(LOG_LEVEL_ENV) or "INFO"
    return value.upper()


def setup_logging(
    level: str | None = None,
    log_file: Path | None = None,
    show_timestamps: bool = True,
) -> None:
    """Configure structlog for console and optional file output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); falls back to
            STILLBROOK_LOG_LEVEL and then INFO
        log_file: Optional file path to write JSON logs
        show_timestamps: Include timestamps in console output
    """
    log_level = getattr(logging, resolve_level(level), logging.INFO)

    handlers: list[logging.Handler] = []
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )
    # httpx logs every request URL at INFO, which would leak the api_key param
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if show_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False))

    if log_file:
        processors.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=False),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger for a module.

    Args:
        name: Module name (e.g., "stillbrook.classify")

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)

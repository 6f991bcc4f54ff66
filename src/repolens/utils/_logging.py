"""Logging utilities for repolens.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs either to a configured log file or to
stderr. Each logger is self-contained and does not modify global structlog
configuration, so embedding applications keep control of their own setup.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from repolens.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks REPOLENS_DEBUG first (sets DEBUG if present), then
    REPOLENS_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("REPOLENS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("REPOLENS_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, REPOLENS_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("REPOLENS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    log_file: str | Path | None = None,
    log_level: int | None = None,
    log_format: LogFormatType = "json",
    stream: TextIO | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    Args:
        log_file: Path to a log file opened in append mode. When empty or
            None, records go to `stream` instead.
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".
        stream: Text stream used when no log file is given (default stderr).

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = log_level if log_level is not None else _get_log_level()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.WriteLoggerFactory(
            file=stream if stream is not None else sys.stderr
        )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_engine_logger(config: LoggingConfig) -> FilteringBoundLogger:
    """Create the logger used by the engine from a logging config section.

    The log level is determined by (in order of precedence):
    1. REPOLENS_DEBUG environment variable (if set, enables DEBUG level)
    2. The configured level
    3. Default: INFO

    Args:
        config: Logging configuration section.

    Returns:
        A FilteringBoundLogger instance bound to the "repolens" component.
    """
    level = _log_level_from_string(str(config.level), respect_env=True)
    logger = create_logger(
        log_file=config.file or None,
        log_level=level,
        log_format=cast("LogFormatType", str(config.format)),
    )
    return logger.bind(component="repolens")

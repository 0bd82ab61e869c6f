"""Logging utilities for hcserver.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs to the supervisor log file. The
logger is self-contained and does not modify global structlog configuration.
"""

import logging
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

from ._paths import get_hcserver_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks HCSERVER_DEBUG first (sets DEBUG if present), then
    HCSERVER_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("HCSERVER_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("HCSERVER_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, HCSERVER_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("HCSERVER_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _create_logger(
    log_file_path: str,
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger writing to the specified file.

    Args:
        log_file_path: Path to the log file (will be opened in append mode).
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    log_path = Path(log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    effective_level = log_level if log_level is not None else _get_log_level()

    stdlib_logger: logging.Logger | None = None
    if max_bytes is not None and backup_count is not None:
        stdlib_logger = logging.getLogger(f"hcserver.{log_path.stem}.{id(log_path)}")
        stdlib_logger.handlers.clear()
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(effective_level)

        handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        handler.setLevel(effective_level)
        # structlog renders the message; the handler only writes it
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)

        logger_factory = structlog.stdlib.LoggerFactory()
    else:
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)
    raw_logger = stdlib_logger if stdlib_logger is not None else logger_factory()

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_server_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger used by the supervisor and the hardcore workflow.

    Writes structured logs to either the given file or the default log file
    at .hcserver/logs/hcserver.log.

    The log level can be overridden by environment variables:
    - HCSERVER_DEBUG: If set, enables DEBUG level logging regardless of config

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (uses the default file if empty).
        max_bytes: Maximum size in bytes before rotation.
        backup_count: Number of rotated log files to keep.

    Returns:
        A FilteringBoundLogger instance.
    """
    effective_file = log_file if log_file else str(get_hcserver_log_file())
    effective_level = _log_level_from_string(level, respect_env=True)

    return _create_logger(
        effective_file,
        log_level=effective_level,
        log_format=log_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )

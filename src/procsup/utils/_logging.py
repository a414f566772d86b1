"""Logging utilities for procsup.

This module provides standalone structlog logger factories for the
supervisor and its workers. Each logger is self-contained and does not
modify global structlog configuration.
"""

import logging
import os
import sys
from os import getenv
from pathlib import Path
from typing import IO, TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger, WrappedLogger

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks PROCSUP_DEBUG first (sets DEBUG if present), then PROCSUP_LOG_LEVEL.
    Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("PROCSUP_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("PROCSUP_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, PROCSUP_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("PROCSUP_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def add_process_id(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":  # noqa: UP037
    """Add the current process id to every entry.

    Evaluated per call, so a forked worker reports its own pid.
    """
    event_dict["pid"] = os.getpid()
    return event_dict


def _create_logger(
    stream: IO[str],
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "text",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger writing to the given stream.

    Args:
        stream: Open text stream to write log lines to.
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = log_level if log_level is not None else _get_log_level()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_process_id,
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
            structlog.WriteLogger(file=stream),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_supervisor_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "text",
    log_file: str = "",
    stream: IO[str] | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger shared by the supervisor and its workers.

    Writes to `log_file` when given (appending, parent directories created),
    otherwise to `stream` or stdout. Workers inherit the logger across fork;
    the process id processor keeps their lines distinguishable.

    The log level can be overridden by environment variables:
    - PROCSUP_DEBUG: If set, enables DEBUG level logging regardless of config

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (writes to the stream if empty).
        stream: Stream used when no log file is given. Defaults to stdout.

    Returns:
        A FilteringBoundLogger instance configured for supervisor logging.
    """
    effective_level = _log_level_from_string(level, respect_env=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Line buffered so forked workers never interleave partial lines
        target: IO[str] = log_path.open("a", buffering=1)
    else:
        target = stream if stream is not None else sys.stdout

    return _create_logger(target, log_level=effective_level, log_format=log_format)

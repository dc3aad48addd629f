"""Structured logging for the trace locator.

Stack traces are user data: exception messages routinely embed connection
strings and tokens, and traces pasted from a terminal carry color codes.
Every event therefore passes through ``secret_sanitizer`` before rendering.

Logs are written to stderr (stdout carries command results) and optionally
to a file. ``bind_context`` attaches ``trace_id``/``repo_id`` for the
duration of one resolution.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from trace_locator._version import __version__
from trace_locator.utils.security import SecretRedactor, sanitize_for_logging

SERVICE_NAME = "trace-locator"


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_redactor = SecretRedactor(placeholder="[REDACTED]")


def sanitize_log_value(value: Any) -> Any:
    """Strip control sequences and redact secrets, recursing into containers."""
    if isinstance(value, str):
        return _redactor.redact(sanitize_for_logging(value))
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor applying sanitize_log_value to every field."""
    for key, value in event_dict.items():
        event_dict[key] = sanitize_log_value(value)
    return event_dict


def add_service_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor stamping the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def build_processors(log_format: LogFormat) -> list[Processor]:
    """Return the structlog processor chain ending in the format's renderer."""
    renderer: Processor
    if log_format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    return [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        secret_sanitizer,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _build_handlers(numeric_level: int, file_path: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(file_path, encoding="utf-8"))
        except OSError as e:
            logging.getLogger("trace_locator.logging").warning(
                "Could not open log file %s: %s", file_path, e
            )

    for handler in handlers:
        handler.setLevel(numeric_level)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name, case insensitive
        log_format: "json" or "console"
        file_path: Log file, used when file_enabled is True
        file_enabled: Also write logs to file_path

    Example:
        configure_logging(level="DEBUG", log_format="console")
    """
    level = LogLevel(str(level).upper())
    log_format = LogFormat(str(log_format).lower())
    numeric_level: int = getattr(logging, level.value)

    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_file = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_build_handlers(numeric_level, log_file),
        force=True,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind values included in every log entry until unbound.

    Example:
        bind_context(trace_id="abc", repo_id="github.com/acme/shop")
        log.info("frame_resolved")  # carries trace_id and repo_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables."""
    structlog.contextvars.unbind_contextvars(*keys)


class LogEventNames:
    """Event names used across the resolver and adapters."""

    # Parsing
    LANGUAGE_GUESSED = "language_guessed"
    LANGUAGE_NOT_GUESSED = "language_not_guessed"
    TRACE_PARSED = "trace_parsed"
    TRACE_PARSE_ERROR = "trace_parse_error"
    PARSER_REJECTED_TRACE = "parser_rejected_trace"

    # Repository and sha checks
    REPO_NOT_FOUND = "repo_not_found"
    REPO_MAPPED = "repo_mapped"
    SHA_MISSING = "sha_missing"
    SHA_NOT_FOUND_FETCHING = "sha_not_found_fetching"
    SHA_NOT_FOUND_AFTER_FETCH = "sha_not_found_after_fetch"
    SHA_CHECK_FAILED = "sha_check_failed"

    # Resolution
    RESOLUTION_START = "resolution_start"
    RESOLUTION_COMPLETE = "resolution_complete"
    FRAME_RESOLVED = "frame_resolved"
    FRAME_UNRESOLVED = "frame_unresolved"
    ALL_FRAMES_FAILED = "all_frames_failed"
    POSITION_RESOLVED = "position_resolved"
    BUFFER_READ_FAILED = "buffer_read_failed"

    # Git
    GIT_COMMAND = "git_command"
    GIT_COMMAND_FAILED = "git_command_failed"
    GIT_COMMAND_TIMEOUT = "git_command_timeout"

    # Workspace index
    INDEX_BUILT = "workspace_index_built"
    INDEX_CACHE_HIT = "workspace_index_cache_hit"

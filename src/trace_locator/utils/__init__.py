"""Utility functions and helpers.

This module provides various utilities for the trace locator:
- security: Secret redaction, revision and path validation
- safe_subprocess: Safe git subprocess execution
- async_helpers: Exceptions, async retry and timeouts
- logging: Structured logging with secret sanitization
"""

from trace_locator.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    configure_logging,
    unbind_context,
)
from trace_locator.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
    validate_relative_path,
    validate_revision,
)

__all__ = [
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "bind_context",
    "configure_logging",
    "unbind_context",
    "validate_relative_path",
    "validate_revision",
]

"""Configuration loading and validation."""

from .loader import load_config, load_config_or_default, validate_config
from .schema import (
    FileLoggingConfig,
    GitConfig,
    LocatorConfig,
    LoggingConfig,
    RetryConfig,
    WorkspaceConfig,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_or_default",
    "validate_config",
    # Root config
    "LocatorConfig",
    # Sections
    "GitConfig",
    "WorkspaceConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    "RetryConfig",
]

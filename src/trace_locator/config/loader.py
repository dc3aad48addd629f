"""Load ``trace-locator.yaml``.

The file is optional: every setting has a default and may also come from
``TRACE_LOCATOR_*`` environment variables. Inside the file, ``${VAR}``
references are expanded before parsing and ``${VAR:-fallback}`` supplies a
value for unset variables.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .schema import LocatorConfig

DEFAULT_CONFIG_NAME = "trace-locator.yaml"

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<fallback>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` references in text.

    Raises:
        ValueError: If a variable without fallback is unset
    """

    def expand(match: re.Match[str]) -> str:
        name = match.group("name")
        value = os.environ.get(name, match.group("fallback"))
        if value is None:
            raise ValueError(f"Environment variable {name} not found")
        return value

    return _ENV_REFERENCE.sub(expand, text)


def _read_mapping(path: Path) -> dict[str, Any]:
    document = yaml.safe_load(substitute_env_vars(path.read_text(encoding="utf-8")))
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return document


def load_config(path: Path) -> LocatorConfig:
    """
    Load and validate a configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated LocatorConfig; environment variables still override file values

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a referenced variable is missing or validation fails
        ValidationError: If the file doesn't match the schema
    """
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    config = LocatorConfig.model_validate(_read_mapping(path))
    validate_config(config)
    return config


def load_config_or_default(path: Path | None) -> LocatorConfig:
    """Load ``path`` if given and present, else defaults plus environment."""
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_NAME
    if path.is_file():
        return load_config(path)
    return LocatorConfig()


def validate_config(config: LocatorConfig) -> None:
    """Checks that span more than one field.

    Raises:
        ValueError: If the configuration is inconsistent
    """
    if config.git.fetch_timeout < config.git.command_timeout:
        raise ValueError("git.fetch_timeout must not be shorter than git.command_timeout")

    missing = [str(root) for root in config.workspace.roots if not root.is_dir()]
    if missing:
        raise ValueError(f"Workspace root is not a directory: {', '.join(missing)}")

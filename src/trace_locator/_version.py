"""Package version, read from the installed metadata or pyproject.toml."""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "trace-locator"

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _read_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        pass

    # Source checkout without an install
    if not _PYPROJECT.is_file():
        raise RuntimeError(f"Could not determine {DISTRIBUTION_NAME} version")
    with _PYPROJECT.open("rb") as f:
        return str(tomllib.load(f)["tool"]["poetry"]["version"])


__version__ = _read_version()

__all__ = ["__version__"]

"""Locate the frames of a production stack trace in a local working copy."""

from trace_locator._version import __version__

__all__ = ["__version__"]

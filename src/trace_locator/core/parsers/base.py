"""Shared machinery for the per-language stack trace parsers.

Every parser splits the raw text into lines, recognises frame lines with its
own grammar and treats whatever precedes the first frame as the exception
banner. A frame line whose location cannot be interpreted still produces a
StackFrame, with ``error`` describing the problem, so the output always has
one frame per frame line of the input.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import ClassVar

import structlog

from trace_locator.models.trace import Language, StackFrame, StructuredTrace
from trace_locator.utils.async_helpers import TraceParseError
from trace_locator.utils.logging import LogEventNames

log = structlog.get_logger()

# "Namespace.ClassName: message", with ".", "::" or "\" as namespace separators
BANNER_PATTERN = re.compile(
    r"^((?:[A-Za-z_$][\w$]*)(?:(?:\.|::|\\)[A-Za-z_$][\w$]*)*)\s*:\s?(.*)$",
    re.DOTALL,
)


def normalize_path(path: str) -> str:
    """Normalise a recorded file path for matching against the workspace."""
    path = path.strip()
    if path.startswith("file://"):
        path = path[len("file://") :]
    return path.replace("\\", "/")


def split_arguments(text: str) -> list[str]:
    """Split a comma separated argument list, ignoring nested brackets."""
    if not text or not text.strip():
        return []

    arguments: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    arguments.append("".join(current).strip())
    return [argument for argument in arguments if argument]


class StackTraceParser(ABC):
    """Base class for a single language's stack trace grammar.

    Subclasses implement ``_extract`` which returns the banner lines and the
    frames, in input order. ``parse`` raises TraceParseError only when no
    frame line at all is recognised.
    """

    language: ClassVar[Language]

    def parse(self, text: str) -> StructuredTrace:
        """Parse raw stack trace text.

        Args:
            text: The whole stack trace, lines separated by newlines.

        Returns:
            StructuredTrace with header, message and frames.

        Raises:
            TraceParseError: If the text holds no frame this grammar recognises.
        """
        if not text or not text.strip():
            raise TraceParseError("Empty stack trace provided")

        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        banner, frames = self._extract(lines)

        if not frames:
            raise TraceParseError(f"No {self.language} stack frames found")

        header = self._build_header(banner)
        trace = StructuredTrace(
            header=header,
            message=self._extract_message(header),
            lines=frames,
            language=self.language,
        )

        log.debug(
            LogEventNames.TRACE_PARSED,
            language=str(self.language),
            frames=len(frames),
            errored_frames=len(frames) - len(trace.resolvable_frames),
        )
        return trace

    @abstractmethod
    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        """Return (banner lines, frames) for the given trace lines."""

    def _build_header(self, banner: list[str]) -> str:
        return "\n".join(line.strip() for line in banner if line.strip())

    def _extract_message(self, header: str) -> str | None:
        match = BANNER_PATTERN.match(header)
        if not match:
            return None
        return match.group(2).strip() or None

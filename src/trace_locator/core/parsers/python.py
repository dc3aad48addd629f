"""Parser for Python tracebacks.

Supports:
- Standard tracebacks ("most recent call last")
- Chained exceptions; frames of every segment are kept in input order
- Source lines and caret markers under frames
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path
from trace_locator.models.trace import Language, StackFrame


class PythonStackTraceParser(StackTraceParser):
    """Parser for CPython tracebacks.

    The banner of a Python traceback comes last, so the header is the final
    exception line rather than the text before the first frame.
    """

    language = Language.PYTHON

    TRACEBACK_HEADER = re.compile(r"^\s*Traceback \(most recent call last\):\s*$")
    FRAME_PATTERN = re.compile(r'^\s*File "([^"]+)", line (\d+)(?:, in (.+?))?\s*$')
    EXCEPTION_PATTERN = re.compile(
        r"^([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*):\s*(.*)$",
    )
    EXCEPTION_NO_MSG_PATTERN = re.compile(
        r"^([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)$",
    )
    CHAINED_PATTERN = re.compile(
        r"^\s*(?:The above exception was the direct cause of the following exception:|"
        r"During handling of the above exception, another exception occurred:)\s*$"
    )

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        frames: list[StackFrame] = []
        remainder: list[str] = []

        i = 0
        while i < len(lines):
            line = lines[i]
            frame_match = self.FRAME_PATTERN.match(line)

            if frame_match:
                frames.append(
                    StackFrame(
                        file_full_path=normalize_path(frame_match.group(1)),
                        method=frame_match.group(3) or "<module>",
                        line=int(frame_match.group(2)),
                    )
                )
                # Skip the indented source line and caret markers under the frame
                while i + 1 < len(lines) and self._is_frame_detail(lines[i + 1]):
                    i += 1
            elif not (self.TRACEBACK_HEADER.match(line) or self.CHAINED_PATTERN.match(line)):
                remainder.append(line)

            i += 1

        return remainder, frames

    def _is_frame_detail(self, line: str) -> bool:
        if not line.startswith("    "):
            return False
        return self.FRAME_PATTERN.match(line) is None

    def _build_header(self, banner: list[str]) -> str:
        # The exception line closest to the end is the one that was raised
        for line in reversed(banner):
            stripped = line.strip()
            if not stripped:
                continue
            if self.EXCEPTION_PATTERN.match(stripped) or self.EXCEPTION_NO_MSG_PATTERN.match(
                stripped
            ):
                return stripped

        return next((line.strip() for line in banner if line.strip()), "")

    def _extract_message(self, header: str) -> str | None:
        exc_match = self.EXCEPTION_PATTERN.match(header)
        if exc_match:
            return exc_match.group(2) or None
        return None

"""Parser for Ruby backtraces.

Handles both the interpreter's own output, where the first frame shares a
line with the exception banner::

    app/models/user.rb:10:in `name': undefined method `upcase' for nil (NoMethodError)
    	from app/controllers/users_controller.rb:5:in `show'

and the "banner first" layout used by error trackers::

    NoMethodError: undefined method `upcase' for nil
    app/models/user.rb:10:in 'User#name'
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path
from trace_locator.models.trace import Language, StackFrame


class RubyStackTraceParser(StackTraceParser):
    """Parser for Ruby and Rails backtraces."""

    language = Language.RUBY

    FRAME_PATTERN = re.compile(
        r"^\s*(?:from\s+)?([^\s:][^\s]*?):(\d+)(?::in\s+[`'](.+?)')?\s*$"
    )
    # Frame followed by ": message (ExceptionClass)"
    FIRST_LINE_PATTERN = re.compile(
        r"^\s*([^\s:][^\s]*?):(\d+):in\s+[`'](.+?)':\s+(.*?)\s+\(([A-Z][\w:]*)\)\s*$"
    )
    SUFFIXED_BANNER_PATTERN = re.compile(r"^(.*)\s+\(([A-Z][\w:]*)\)$", re.DOTALL)
    # "... 12 levels..." elision marker
    ELISION_PATTERN = re.compile(r"^\s*\.\.\.\s*\d+\s+levels\.\.\.\s*$")

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []

        for line in lines:
            if not frames:
                first_match = self.FIRST_LINE_PATTERN.match(line)
                if first_match:
                    banner.append(f"{first_match.group(5)}: {first_match.group(4)}")
                    frames.append(
                        StackFrame(
                            file_full_path=normalize_path(first_match.group(1)),
                            method=first_match.group(3),
                            line=int(first_match.group(2)),
                        )
                    )
                    continue

            frame_match = self.FRAME_PATTERN.match(line)
            if frame_match:
                frames.append(
                    StackFrame(
                        file_full_path=normalize_path(frame_match.group(1)),
                        method=frame_match.group(3),
                        line=int(frame_match.group(2)),
                    )
                )
            elif self.ELISION_PATTERN.match(line):
                continue
            elif not frames:
                banner.append(line)

        return banner, frames

    def _extract_message(self, header: str) -> str | None:
        message = super()._extract_message(header)
        if message is not None:
            return message

        # "message (ExceptionClass)"
        suffixed = self.SUFFIXED_BANNER_PATTERN.match(header)
        if suffixed:
            return suffixed.group(1).strip() or None
        return None

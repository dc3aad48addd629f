"""Parser for .NET (C#) exception stack traces.

Recognised frame lines::

    at MyApp.Services.OrderService.Place(Order order, Int32 qty) in C:\\src\\MyApp\\Services\\OrderService.cs:line 42
    at System.Threading.Tasks.Task.Execute()

Frames without ``in <file>:line N`` (framework code, release builds without
symbols) are kept with an error.
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path, split_arguments
from trace_locator.models.trace import Language, StackFrame


class CSharpStackTraceParser(StackTraceParser):
    """Parser for ``Exception.ToString()`` output."""

    language = Language.CSHARP

    FRAME_PATTERN = re.compile(r"^\s*at\s+(.+?)(?:\s+in\s+(.+):line\s+(\d+))?\s*$")
    CALL_PATTERN = re.compile(r"^(.+?)\((.*)\)$")
    BOUNDARY_PATTERN = re.compile(r"^\s*---\s*End of .*---\s*$")

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []

        for line in lines:
            if self.BOUNDARY_PATTERN.match(line):
                continue

            frame_match = self.FRAME_PATTERN.match(line)
            if frame_match:
                frames.append(self._parse_frame(frame_match))
            elif not frames:
                banner.append(line)

        return banner, frames

    def _parse_frame(self, match: re.Match[str]) -> StackFrame:
        method, arguments = self._parse_call(match.group(1))
        file_path = match.group(2)

        if file_path is None:
            return StackFrame(
                method=method,
                arguments=arguments,
                error="No file information for stack frame",
            )

        return StackFrame(
            file_full_path=normalize_path(file_path),
            method=method,
            arguments=arguments,
            line=int(match.group(3)),
        )

    def _parse_call(self, call: str) -> tuple[str, list[str]]:
        call_match = self.CALL_PATTERN.match(call)
        if not call_match:
            return (call, [])
        return (call_match.group(1), split_arguments(call_match.group(2)))

    def _extract_message(self, header: str) -> str | None:
        # Inner exceptions follow " ---> "; the outer banner is the first line
        return super()._extract_message(header.split("\n", 1)[0].split(" ---> ", 1)[0])

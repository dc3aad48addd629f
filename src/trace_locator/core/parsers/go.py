"""Parser for Go panic traces.

A Go frame spans two lines, the function and its location::

    panic: runtime error: integer divide by zero

    goroutine 1 [running]:
    main.divide(0x1, 0x0)
    	/home/dev/app/main.go:12 +0x1d
    main.main()
    	/home/dev/app/main.go:8 +0x25
    exit status 2
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path, split_arguments
from trace_locator.models.trace import Language, StackFrame


class GoStackTraceParser(StackTraceParser):
    """Parser for ``panic`` and ``runtime/debug.Stack()`` output."""

    language = Language.GO

    GOROUTINE_PATTERN = re.compile(r"^goroutine\s+\d+\s*\[.*\]:\s*$")
    FUNCTION_PATTERN = re.compile(r"^(\S.*)\(([^()]*)\)\s*$")
    CREATED_BY_PATTERN = re.compile(r"^created by\s+(\S+)(?:\s+in goroutine \d+)?\s*$")
    LOCATION_PATTERN = re.compile(r"^\s+(\S.*?\.go):(\d+)(?:\s+\+0x[0-9a-fA-F]+)?\s*$")

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []
        in_goroutine = False

        i = 0
        while i < len(lines):
            line = lines[i]
            next_line = lines[i + 1] if i + 1 < len(lines) else ""
            location = self.LOCATION_PATTERN.match(line)
            next_location = self.LOCATION_PATTERN.match(next_line)

            if self.GOROUTINE_PATTERN.match(line):
                in_goroutine = True
                i += 1
                continue

            call = self._match_call(line)
            if call is not None and (in_goroutine or next_location):
                method, arguments = call
                if next_location:
                    frames.append(self._located_frame(method, arguments, next_location))
                    i += 2
                    continue
                frames.append(
                    StackFrame(
                        method=method,
                        arguments=arguments,
                        error="No source location for stack frame",
                    )
                )
            elif location:
                frames.append(self._located_frame(None, [], location))
            elif not frames and not in_goroutine:
                banner.append(line)

            i += 1

        return banner, frames

    def _match_call(self, line: str) -> tuple[str, list[str]] | None:
        created_match = self.CREATED_BY_PATTERN.match(line)
        if created_match:
            return (created_match.group(1), [])

        function_match = self.FUNCTION_PATTERN.match(line)
        if function_match:
            return (function_match.group(1), split_arguments(function_match.group(2)))
        return None

    def _located_frame(
        self,
        method: str | None,
        arguments: list[str],
        location_match: re.Match[str],
    ) -> StackFrame:
        return StackFrame(
            file_full_path=normalize_path(location_match.group(1)),
            method=method,
            arguments=arguments,
            line=int(location_match.group(2)),
        )

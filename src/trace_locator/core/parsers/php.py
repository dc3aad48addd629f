"""Parser for PHP exception traces.

Recognised layout::

    PHP Fatal error:  Uncaught RuntimeException: Boom in /var/www/src/Job.php:27
    Stack trace:
    #0 /var/www/src/Worker.php(88): App\\Job->run(Array, 3)
    #1 [internal function]: App\\Worker->handle(Object(App\\Job))
    #2 {main}
      thrown in /var/www/src/Job.php on line 27
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path, split_arguments
from trace_locator.models.trace import Language, StackFrame


class PhpStackTraceParser(StackTraceParser):
    """Parser for PHP ``getTraceAsString()`` style traces."""

    language = Language.PHP

    FRAME_PATTERN = re.compile(r"^\s*#(\d+)\s+(.+?)\s*$")
    LOCATED_CALL_PATTERN = re.compile(r"^(.+?)\((\d+)\):\s*(.*)$")
    INTERNAL_CALL_PATTERN = re.compile(r"^\[internal function\]:\s*(.*)$")
    CALL_PATTERN = re.compile(r"^(.+?)\((.*)\)$")
    STACK_TRACE_MARKER = re.compile(r"^\s*Stack trace:\s*$")
    # Prefixes PHP adds in front of the exception class
    BANNER_PREFIX = re.compile(r"^(?:PHP\s+)?(?:Fatal error:\s+)?(?:Uncaught\s+)?", re.IGNORECASE)
    BANNER_LOCATION_SUFFIX = re.compile(r"\s+in\s+\S+:\d+\s*$")

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []

        for line in lines:
            frame_match = self.FRAME_PATTERN.match(line)
            if frame_match:
                frames.append(self._parse_frame(frame_match.group(2)))
            elif not frames and not self.STACK_TRACE_MARKER.match(line):
                banner.append(line)

        return banner, frames

    def _parse_frame(self, body: str) -> StackFrame:
        if body == "{main}":
            return StackFrame(method="{main}", error="Script entry point has no file location")

        internal_match = self.INTERNAL_CALL_PATTERN.match(body)
        if internal_match:
            method, arguments = self._parse_call(internal_match.group(1))
            return StackFrame(
                method=method,
                arguments=arguments,
                error="Internal function has no file location",
            )

        located_match = self.LOCATED_CALL_PATTERN.match(body)
        if not located_match:
            return StackFrame(error=f"Unable to parse stack frame: {body}")

        method, arguments = self._parse_call(located_match.group(3))
        return StackFrame(
            file_full_path=normalize_path(located_match.group(1)),
            method=method,
            arguments=arguments,
            line=int(located_match.group(2)),
        )

    def _parse_call(self, call: str) -> tuple[str | None, list[str]]:
        call_match = self.CALL_PATTERN.match(call.strip())
        if not call_match:
            return (call.strip() or None, [])
        return (call_match.group(1), split_arguments(call_match.group(2)))

    def _extract_message(self, header: str) -> str | None:
        first_line = header.split("\n", 1)[0]
        banner = self.BANNER_PREFIX.sub("", first_line.strip())
        banner = self.BANNER_LOCATION_SUFFIX.sub("", banner)
        return super()._extract_message(banner)

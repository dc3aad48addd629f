"""Parser for JavaScript and TypeScript (V8 and Gecko style) stack traces.

Recognised frame lines::

    at LinkRequest.render (/srv/api/modules/web/link_request.js:39:33)
    at async Promise.all (index 0)
    at /srv/api/lib/server.js:62:20
    render@https://example.com/static/app.js:12:7
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser, normalize_path
from trace_locator.models.trace import Language, StackFrame


class JavaScriptStackTraceParser(StackTraceParser):
    """Parser for Node.js and browser stack traces."""

    language = Language.JAVASCRIPT

    V8_FRAME_PATTERN = re.compile(r"^\s*at\s+(.+?)\s*$")
    V8_CALL_PATTERN = re.compile(r"^(?:async\s+)?(?:new\s+)?(.+?)\s+\((.*)\)$")
    GECKO_FRAME_PATTERN = re.compile(r"^\s*([^@\s]*)@(.+):(\d+):(\d+)\s*$")
    LOCATION_PATTERN = re.compile(r"^(.+?):(\d+)(?::(\d+))?$")

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []

        for line in lines:
            frame = self._parse_frame(line, strict=not frames)
            if frame is not None:
                frames.append(frame)
            elif not frames:
                banner.append(line)

        return banner, frames

    def _parse_frame(self, line: str, strict: bool = False) -> StackFrame | None:
        """Parse one frame line.

        With ``strict``, used until the first frame is found, an "at ..." line
        only counts when it carries a call or a location, so banner prose such
        as "at least one field is required" stays in the banner.
        """
        v8_match = self.V8_FRAME_PATTERN.match(line)
        if v8_match:
            body = v8_match.group(1)
            if strict and not (
                self.V8_CALL_PATTERN.match(body) or self.LOCATION_PATTERN.match(body)
            ):
                return None
            return self._parse_v8_frame(body)

        gecko_match = self.GECKO_FRAME_PATTERN.match(line)
        if gecko_match:
            return StackFrame(
                file_full_path=normalize_path(gecko_match.group(2)),
                method=gecko_match.group(1) or None,
                line=int(gecko_match.group(3)),
                column=int(gecko_match.group(4)),
            )

        return None

    def _parse_v8_frame(self, body: str) -> StackFrame:
        method: str | None = None
        location = body

        call_match = self.V8_CALL_PATTERN.match(body)
        if call_match:
            method = call_match.group(1)
            location = call_match.group(2)

        # "eval at fn (file.js:1:2), <anonymous>:1:3" points at the eval site
        if location.startswith("eval at "):
            inner = re.search(r"\(([^()]+:\d+:\d+)\)", location)
            if inner:
                location = inner.group(1)

        location_match = self.LOCATION_PATTERN.match(location)
        if not location_match:
            return StackFrame(
                file_full_path=location or None,
                method=method,
                error=f"Unable to parse location from stack frame: {body}",
            )

        column = location_match.group(3)
        return StackFrame(
            file_full_path=normalize_path(location_match.group(1)),
            method=method,
            line=int(location_match.group(2)),
            column=int(column) if column is not None else None,
        )

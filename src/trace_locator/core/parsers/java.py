"""Parser for JVM (Java and Kotlin) stack traces.

Recognised frame lines::

    at com.example.orders.OrderService.place(OrderService.java:42)
    at java.base/java.lang.Thread.run(Thread.java:829)
    at sun.reflect.NativeMethodAccessorImpl.invoke0(Native Method)

JVM frames only record a file name; the package of the declaring class is
used to rebuild a path (``com/example/orders/OrderService.java``) which gives
the path matcher more segments to align.
"""

from __future__ import annotations

import re

from trace_locator.core.parsers.base import StackTraceParser
from trace_locator.models.trace import Language, StackFrame


class JavaStackTraceParser(StackTraceParser):
    """Parser for ``Throwable.printStackTrace()`` output."""

    language = Language.JAVA

    FRAME_PATTERN = re.compile(r"^\s*at\s+([\w$.<>/\-]+)\((.*)\)\s*(?:~?\[.*\])?\s*$")
    LOCATION_PATTERN = re.compile(r"^(.+?\.(?:java|kt|kts|scala|groovy)):(\d+)$")
    THREAD_PREFIX = re.compile(r'^Exception in thread "[^"]*"\s+')

    def _extract(self, lines: list[str]) -> tuple[list[str], list[StackFrame]]:
        banner: list[str] = []
        frames: list[StackFrame] = []

        for line in lines:
            frame_match = self.FRAME_PATTERN.match(line)
            if frame_match:
                frames.append(self._parse_frame(frame_match.group(1), frame_match.group(2)))
            elif not frames:
                banner.append(line)
            # "Caused by:", "Suppressed:" and "... N more" after the first frame are not frames

        return banner, frames

    def _parse_frame(self, qualified: str, location: str) -> StackFrame:
        # Drop the module/class loader prefix ("java.base/")
        qualified = qualified.rsplit("/", 1)[-1]
        class_name, _, method = qualified.rpartition(".")

        location_match = self.LOCATION_PATTERN.match(location.strip())
        if not location_match:
            return StackFrame(
                method=qualified,
                error=f"No source location for stack frame: {location or 'unknown'}",
            )

        file_name = location_match.group(1)
        package, _, _ = class_name.rpartition(".")
        file_path = f"{package.replace('.', '/')}/{file_name}" if package else file_name

        return StackFrame(
            file_full_path=file_path,
            method=f"{class_name}.{method}" if class_name else method,
            line=int(location_match.group(2)),
        )

    def _extract_message(self, header: str) -> str | None:
        first_line = self.THREAD_PREFIX.sub("", header.split("\n", 1)[0])
        return super()._extract_message(first_line)

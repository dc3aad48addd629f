"""Translate file positions through unified diffs.

A frame position recorded at one revision is carried to another revision by
walking the hunks of the diff between them. The resolver composes two such
translations: commit -> HEAD, then HEAD -> live buffer.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field

from trace_locator.models.trace import ResolvedPosition
from trace_locator.utils.async_helpers import RemapError

MAX_RANGE_VALUE = 2147483647

HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass(frozen=True)
class Hunk:
    """One ``@@`` block of a unified diff.

    As in GNU diff output, a side with zero lines reports the line *before*
    the change as its start.
    """

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: tuple[str, ...] = field(default_factory=tuple)

    @property
    def old_end(self) -> int:
        """Last old line covered by the hunk (``old_start`` for pure inserts)."""
        if self.old_lines == 0:
            return self.old_start
        return self.old_start + self.old_lines - 1


@dataclass(frozen=True)
class LocationRange:
    """A text range; a single-line anchor ends at MAX_RANGE_VALUE."""

    line_start: int
    col_start: int
    line_end: int
    col_end: int = MAX_RANGE_VALUE

    @classmethod
    def anchor(cls, line: int, column: int) -> LocationRange:
        return cls(line_start=line, col_start=column, line_end=line, col_end=MAX_RANGE_VALUE)


def parse_unified_diff(text: str) -> list[Hunk]:
    """Extract the hunks of a single-file unified diff.

    File headers (``diff --git``, ``index``, ``---``/``+++``) and
    ``\\ No newline at end of file`` markers are ignored.
    """
    hunks: list[Hunk] = []
    header: re.Match[str] | None = None
    body: list[str] = []

    def flush() -> None:
        if header is None:
            return
        hunks.append(
            Hunk(
                old_start=int(header.group(1)),
                old_lines=int(header.group(2)) if header.group(2) is not None else 1,
                new_start=int(header.group(3)),
                new_lines=int(header.group(4)) if header.group(4) is not None else 1,
                lines=tuple(body),
            )
        )

    # Only "\n" ends a diff line; form feeds and U+2028 are line content
    raw_lines = text.split("\n")
    if raw_lines and raw_lines[-1] == "":
        raw_lines.pop()

    for raw_line in raw_lines:
        line = raw_line.rstrip("\r")
        match = HUNK_HEADER_PATTERN.match(line)
        if match:
            flush()
            header = match
            body = []
        elif header is not None and line[:1] in (" ", "-", "+"):
            body.append(line)
        elif header is not None and line == "":
            # Some tools strip the trailing space of empty context lines
            body.append(" ")

    flush()
    return hunks


def normalize_file_contents(text: str) -> str:
    """Strip a byte order mark and convert line endings to ``\\n``."""
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def structured_patch(old_text: str, new_text: str, path: str) -> str:
    """Compute a unified diff between two versions of a file."""
    old_lines = normalize_file_contents(old_text).split("\n")
    new_lines = normalize_file_contents(new_text).split("\n")
    return "\n".join(
        difflib.unified_diff(old_lines, new_lines, fromfile=path, tofile=path, n=3, lineterm="")
    )


def _line_within_hunk(line: int, hunk: Hunk) -> int:
    old_no = hunk.old_start
    new_no = hunk.new_start
    deleted = False

    for diff_line in hunk.lines:
        op = diff_line[:1]
        if op == " ":
            if deleted or old_no == line:
                return new_no
            old_no += 1
            new_no += 1
        elif op == "-":
            if old_no == line:
                deleted = True
            old_no += 1
        elif op == "+":
            if deleted:
                return new_no
            new_no += 1

    # The deletion ran to the end of the hunk
    if hunk.new_lines == 0:
        return max(hunk.new_start, 1)
    return min(new_no, hunk.new_start + hunk.new_lines - 1)


def _translate_line(line: int, hunks: list[Hunk]) -> int:
    offset = 0
    for hunk in hunks:
        if hunk.old_lines == 0:
            # Pure insertion after old line ``old_start``
            if hunk.old_start < line:
                offset += hunk.new_lines
                continue
            break
        if hunk.old_end < line:
            offset += hunk.new_lines - hunk.old_lines
            continue
        if hunk.old_start > line:
            break
        return _line_within_hunk(line, hunk)

    return line + offset


def calculate_location(location: LocationRange, hunks: list[Hunk]) -> LocationRange:
    """Translate a range through the hunks of a diff. Columns are preserved."""
    if not hunks:
        return location
    return LocationRange(
        line_start=_translate_line(location.line_start, hunks),
        col_start=location.col_start,
        line_end=_translate_line(location.line_end, hunks),
        col_end=location.col_end,
    )


def remap_through_diff(position: ResolvedPosition, diff_text: str | None) -> ResolvedPosition:
    """Carry a position through one diff.

    Raises:
        RemapError: If no diff was produced. An empty diff means the file is
            unchanged and the position is returned as is.
    """
    if diff_text is None:
        raise RemapError("No diff available to remap position")

    location = calculate_location(
        LocationRange.anchor(position.line, position.column),
        parse_unified_diff(diff_text),
    )
    return ResolvedPosition(line=location.line_start, column=location.col_start)

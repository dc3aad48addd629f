"""Data models for parsed and resolved stack traces."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Language(StrEnum):
    """Languages with a registered stack trace grammar.

    Declaration order is the order parsers are tried when the language
    cannot be guessed.
    """

    JAVASCRIPT = "javascript"
    RUBY = "ruby"
    PHP = "php"
    CSHARP = "c#"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"


@dataclass
class StackFrame:
    """A single call site in a stack trace.

    A frame either carries ``error`` (the position fields are then not
    dependable) or a file path and line number. ``warning`` is informational
    and never excludes the frame from resolution.
    """

    file_full_path: str | None = None
    method: str | None = None
    arguments: list[str] = field(default_factory=list)
    line: int | None = None
    column: int | None = None
    error: str | None = None
    warning: str | None = None
    file_relative_path: str | None = None

    @property
    def is_resolvable(self) -> bool:
        """True when the frame carries no error."""
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        """Serialize with camelCase keys, omitting unset fields."""
        data: dict[str, object] = {
            "fileFullPath": self.file_full_path,
            "fileRelativePath": self.file_relative_path,
            "method": self.method,
            "arguments": list(self.arguments),
            "line": self.line,
            "column": self.column,
            "error": self.error,
            "warning": self.warning,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class StructuredTrace:
    """A stack trace reduced to its banner and an ordered list of frames.

    Two instances exist per resolution: the parsed one, whose positions are
    relative to the commit the error happened on, and the resolved one, whose
    positions are relative to the developer's current buffer. Frames are
    paired positionally.
    """

    header: str = ""
    message: str | None = None
    lines: list[StackFrame] = field(default_factory=list)
    language: Language | None = None
    repo_id: str | None = None
    sha: str | None = None
    trace_id: str | None = None
    parse_error: str | None = None

    @property
    def resolvable_frames(self) -> list[StackFrame]:
        """Frames that carry a usable position."""
        return [frame for frame in self.lines if frame.is_resolvable]

    def to_dict(self) -> dict[str, object]:
        """Serialize with camelCase keys, omitting unset fields."""
        data: dict[str, object] = {
            "header": self.header,
            "message": self.message,
            "lines": [frame.to_dict() for frame in self.lines],
            "language": str(self.language) if self.language else None,
            "repoId": self.repo_id,
            "sha": self.sha,
            "traceId": self.trace_id,
            "parseError": self.parse_error,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class ResolvedPosition:
    """A line/column position in some revision of a file."""

    line: int
    column: int

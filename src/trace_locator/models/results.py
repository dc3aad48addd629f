"""Result objects returned by the resolver."""

from dataclasses import dataclass

from .trace import StructuredTrace


@dataclass
class ResolveStackTraceResult:
    """Outcome of resolving a whole stack trace.

    ``error`` is set only for call-fatal problems (the trace could not be
    parsed); in that case neither trace is present.
    """

    parsed_stack_info: StructuredTrace | None = None
    resolved_stack_info: StructuredTrace | None = None
    warning: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "warning": self.warning,
            "error": self.error,
            "parsedStackInfo": (
                self.parsed_stack_info.to_dict() if self.parsed_stack_info else None
            ),
            "resolvedStackInfo": (
                self.resolved_stack_info.to_dict() if self.resolved_stack_info else None
            ),
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class ResolvePositionResult:
    """Outcome of resolving a single file position."""

    line: int | None = None
    column: int | None = None
    path: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "line": self.line,
            "column": self.column,
            "path": self.path,
            "error": self.error,
        }
        return {key: value for key, value in data.items() if value is not None}

"""Data models and transfer objects."""

from .results import ResolvePositionResult, ResolveStackTraceResult
from .trace import Language, ResolvedPosition, StackFrame, StructuredTrace

__all__ = [
    # Trace models
    "Language",
    "StackFrame",
    "StructuredTrace",
    "ResolvedPosition",
    # Results
    "ResolveStackTraceResult",
    "ResolvePositionResult",
]

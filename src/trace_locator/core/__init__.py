"""Core stack trace parsing and resolution.

This module exports the main components:
- StackTraceResolver: Parses traces and maps frames onto the workspace
- guess_language: Infers a trace's language from file extensions
- get_best_matching_path: Suffix matching of recorded paths
- remap_through_diff: Carries a position through a unified diff
"""

from trace_locator.core.language_guesser import guess_language
from trace_locator.core.path_matcher import get_best_matching_path
from trace_locator.core.position_remapper import remap_through_diff, structured_patch
from trace_locator.core.resolver import StackTraceResolver, WarningCollector, parse_stack_trace

__all__ = [
    "StackTraceResolver",
    "WarningCollector",
    "get_best_matching_path",
    "guess_language",
    "parse_stack_trace",
    "remap_through_diff",
    "structured_patch",
]

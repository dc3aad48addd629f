"""Guess the language that produced a stack trace from its file extensions."""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from trace_locator.models.trace import Language
from trace_locator.utils.logging import LogEventNames

log = structlog.get_logger()

EXTENSION_TO_LANGUAGE: dict[str, Language] = {
    "js": Language.JAVASCRIPT,
    "ts": Language.JAVASCRIPT,
    "rb": Language.RUBY,
    "php": Language.PHP,
    "cs": Language.CSHARP,
    "py": Language.PYTHON,
    "kt": Language.JAVA,
    "java": Language.JAVA,
    "go": Language.GO,
}

# A path-like token after a separator or tab, ending in a known extension
# that is not followed by another identifier character.
EXTENSION_PATTERN = re.compile(
    r"[/|\t].+\.(" + "|".join(EXTENSION_TO_LANGUAGE) + r")[^a-zA-Z0-9]"
)


def guess_language(lines: Sequence[str]) -> Language | None:
    """Return the language whose extension occurs most often in lines.

    An extension only takes the lead once its count is strictly greater
    than the current leader's, so the first extension to reach a count
    wins ties.

    Args:
        lines: Raw stack trace lines.

    Returns:
        The guessed language, or None if no line mentions a known extension.
    """
    counts: dict[str, int] = {}
    most_represented = ""

    for line in lines:
        match = EXTENSION_PATTERN.search(line)
        if not match:
            continue

        ext = match.group(1)
        counts[ext] = counts.get(ext, 0) + 1
        if counts[ext] > counts.get(most_represented, 0):
            most_represented = ext

    if not most_represented:
        log.debug(LogEventNames.LANGUAGE_NOT_GUESSED, lines=len(lines))
        return None

    language = EXTENSION_TO_LANGUAGE[most_represented]
    log.debug(
        LogEventNames.LANGUAGE_GUESSED,
        extension=most_represented,
        occurrences=counts[most_represented],
        language=str(language),
    )
    return language

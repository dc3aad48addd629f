"""Stack trace grammars, one per supported language.

``PARSERS`` maps every Language to its parser. Iteration follows the
declaration order of Language, which is the order used when a trace's
language cannot be guessed.
"""

from collections.abc import Iterator

from trace_locator.core.parsers.base import StackTraceParser
from trace_locator.core.parsers.csharp import CSharpStackTraceParser
from trace_locator.core.parsers.go import GoStackTraceParser
from trace_locator.core.parsers.java import JavaStackTraceParser
from trace_locator.core.parsers.javascript import JavaScriptStackTraceParser
from trace_locator.core.parsers.php import PhpStackTraceParser
from trace_locator.core.parsers.python import PythonStackTraceParser
from trace_locator.core.parsers.ruby import RubyStackTraceParser
from trace_locator.models.trace import Language

_PARSER_TYPES: dict[Language, type[StackTraceParser]] = {
    Language.JAVASCRIPT: JavaScriptStackTraceParser,
    Language.RUBY: RubyStackTraceParser,
    Language.PHP: PhpStackTraceParser,
    Language.CSHARP: CSharpStackTraceParser,
    Language.PYTHON: PythonStackTraceParser,
    Language.JAVA: JavaStackTraceParser,
    Language.GO: GoStackTraceParser,
}

PARSERS: dict[Language, StackTraceParser] = {
    language: _PARSER_TYPES[language]() for language in Language
}


def get_parser(language: Language) -> StackTraceParser:
    """Return the parser registered for a language."""
    return PARSERS[language]


def iter_parsers() -> Iterator[StackTraceParser]:
    """Yield every parser in fallback order."""
    for language in Language:
        yield PARSERS[language]


__all__ = [
    "PARSERS",
    "CSharpStackTraceParser",
    "GoStackTraceParser",
    "JavaScriptStackTraceParser",
    "JavaStackTraceParser",
    "PhpStackTraceParser",
    "PythonStackTraceParser",
    "RubyStackTraceParser",
    "StackTraceParser",
    "get_parser",
    "iter_parsers",
]

"""Redaction of secrets in logged text and validation of git arguments.

Exception messages in production traces routinely embed connection strings
and tokens, so every log field is passed through ``SecretRedactor``. Revisions
and paths taken from a trace end up on the git command line and are checked
here before ``SafeGitCli`` builds a command.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import PurePosixPath

import structlog

log = structlog.get_logger()


class SecurityError(Exception):
    """A value was refused before reaching git or the logs."""


class RedactionError(SecurityError):
    """Secret redaction could not be performed."""


# (pattern, description)
SECRET_PATTERNS: tuple[tuple[str, str], ...] = (
    (
        r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
        "Generic secret assignment",
    ),
    (r"gh[pousr]_[a-zA-Z0-9]{36}", "GitHub token"),
    (r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
    (r"glpat-[\w-]{20,}", "GitLab PAT"),
    (r"xox[baprs]-[\w-]+", "Slack token"),
    (r"NRAK-[A-Z0-9]{27}", "New Relic user key"),
    (r"AKIA[0-9A-Z]{16}", "AWS access key ID"),
    (r"AIza[0-9A-Za-z\-_]{35}", "Google API key"),
    (r"sk_live_[a-zA-Z0-9]{24,}", "Stripe secret key"),
    (
        r"(?i)(postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^:\s]+:[^@\s]+@[^\s]+",
        "Database connection string",
    ),
    (r"(?i)https?://[^:/\s]+:[^@/\s]+@[^\s]+", "URL with credentials"),
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private key header"),
    (r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*", "JWT"),
)

# Commit shas, branch and tag names, optionally with ~N / ^ suffixes
_REVISION = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_./^~@{}-]{0,254}$")
_FORBIDDEN_CHARACTERS = frozenset(";|&`$()<>\\\n\r\t\x00 ")
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class SecretRedactor:
    """Replaces known secret formats with a placeholder.

    Fails closed: a pattern that cannot be compiled or applied raises
    ``RedactionError`` rather than letting unredacted text through.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(exception_message)
    """

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        self.placeholder = placeholder
        self._compiled: list[tuple[re.Pattern[str], str]] = []

        for source, description in (*SECRET_PATTERNS, *(custom_patterns or ())):
            try:
                self._compiled.append((re.compile(source), description))
            except re.error as e:
                log.error("pattern_compilation_failed", pattern=description, error=str(e))
                raise RedactionError(
                    f"Failed to compile secret pattern '{description}': {e}"
                ) from e

    def redact(self, text: str) -> str:
        """Return text with every detected secret replaced."""
        if not text:
            return text

        try:
            for pattern, _ in self._compiled:
                text = pattern.sub(self.placeholder, text)
        except (re.error, TypeError) as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e
        return text


def validate_revision(revision: str) -> bool:
    """Whether a sha, branch or tag name is safe to pass to git.

    Rejects anything git could read as an option, revision ranges and shell
    metacharacters.
    """
    if not revision or revision.startswith("-") or ".." in revision:
        return False
    if not _FORBIDDEN_CHARACTERS.isdisjoint(revision):
        return False
    return _REVISION.match(revision) is not None


def validate_relative_path(path: str) -> bool:
    """Whether a repository relative path stays inside the repository.

    Used for the ``<rev>:<path>`` argument of ``git show`` and the pathspec of
    ``git diff``.
    """
    if not path or "\x00" in path or "\n" in path:
        return False
    pure = PurePosixPath(path)
    return not pure.is_absolute() and ".." not in pure.parts


def sanitize_for_logging(text: str) -> str:
    """Strip ANSI color codes and control characters, keeping newlines and tabs."""
    if not text:
        return text
    return _CONTROL_CHARACTERS.sub("", _ANSI_ESCAPE.sub("", text))

"""Safe subprocess wrapper for git operations.

This module provides a wrapper around the git CLI that:
- Never uses shell=True
- Validates revisions before they reach the command line
- Enforces timeouts on all operations
- Maps common git failures onto specific exceptions
"""

from __future__ import annotations

import asyncio
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from trace_locator.utils.async_helpers import OperationTimeoutError, with_timeout
from trace_locator.utils.logging import LogEventNames
from trace_locator.utils.security import (
    SecurityError,
    validate_relative_path,
    validate_revision,
)

log = structlog.get_logger()


class GitCliError(Exception):
    """Base exception for git CLI errors."""


class GitNotFoundError(GitCliError):
    """Raised when the git binary cannot be located."""


class GitCommandError(GitCliError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, message: str, return_code: int | None = None) -> None:
        super().__init__(message)
        self.return_code = return_code


class CommandTimeoutError(GitCliError):
    """Raised when a command times out."""


@dataclass
class CommandResult:
    """Result of a git command execution."""

    stdout: str
    stderr: str
    return_code: int
    command: list[str]

    @property
    def success(self) -> bool:
        """Return True if the command succeeded."""
        return self.return_code == 0


class SafeGitCli:
    """Safe wrapper for read-mostly git operations.

    Every command is run as ``git -C <repo> ...`` with a list of arguments,
    and every revision is validated before use.

    Example:
        git = SafeGitCli()
        if await git.is_valid_reference(Path("/src/app"), "a1b2c3d"):
            diff = await git.diff(Path("/src/app"), "a1b2c3d", "HEAD", "lib/app.js")
    """

    DEFAULT_TIMEOUT = 30

    # Fetching all remotes can be slow on large repositories
    FETCH_TIMEOUT = 120

    # Context lines requested when a diff should carry the entire file
    WHOLE_FILE_CONTEXT = 1_000_000

    def __init__(
        self,
        git_path: str | None = None,
        default_timeout: int = DEFAULT_TIMEOUT,
        fetch_timeout: int = FETCH_TIMEOUT,
    ) -> None:
        """Initialize the SafeGitCli wrapper.

        Args:
            git_path: Path to the git binary. If None, uses PATH.
            default_timeout: Default timeout for commands in seconds.
            fetch_timeout: Timeout for ``git fetch --all`` in seconds.

        Raises:
            GitNotFoundError: If git is not found.
        """
        resolved_path = git_path or shutil.which("git")
        if not resolved_path:
            raise GitNotFoundError("git executable not found on PATH")

        self._git_path: str = resolved_path
        self._default_timeout = default_timeout
        self._fetch_timeout = fetch_timeout

    @staticmethod
    def _validate_revision(revision: str) -> None:
        if not validate_revision(revision):
            log.warning("invalid_revision_rejected", revision=revision)
            raise SecurityError(f"Invalid git revision: {revision}")

    @staticmethod
    def _validate_path(relative_path: str) -> None:
        if not validate_relative_path(relative_path):
            log.warning("invalid_path_rejected", path=relative_path)
            raise SecurityError(f"Invalid repository path: {relative_path}")

    async def _run_command(
        self,
        repo_path: Path,
        args: list[str],
        timeout: int | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a git command inside repo_path.

        Raises:
            CommandTimeoutError: If the command times out.
            GitCommandError: If check=True and the command fails.
        """
        cmd = [self._git_path, "-C", str(repo_path), *args]
        effective_timeout = timeout or self._default_timeout

        log.debug(LogEventNames.GIT_COMMAND, command=cmd, timeout=effective_timeout)

        def run_sync() -> subprocess.CompletedProcess[str]:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=effective_timeout,
                shell=False,
            )

        try:
            proc = await with_timeout(
                asyncio.to_thread(run_sync),
                timeout=effective_timeout + 5,
            )
        except (subprocess.TimeoutExpired, OperationTimeoutError) as e:
            log.error(LogEventNames.GIT_COMMAND_TIMEOUT, command=cmd, timeout=effective_timeout)
            raise CommandTimeoutError(
                f"Command timed out after {effective_timeout}s: {cmd}"
            ) from e

        result = CommandResult(
            stdout=proc.stdout,
            stderr=proc.stderr,
            return_code=proc.returncode,
            command=cmd,
        )

        if check and not result.success:
            log.debug(
                LogEventNames.GIT_COMMAND_FAILED,
                command=cmd,
                return_code=result.return_code,
                stderr=result.stderr.strip(),
            )
            raise GitCommandError(
                f"git {args[0]} failed: {result.stderr.strip() or result.stdout.strip()}",
                return_code=result.return_code,
            )

        return result

    async def get_toplevel(self, path: Path) -> Path | None:
        """Return the working tree root containing path, or None."""
        result = await self._run_command(path, ["rev-parse", "--show-toplevel"], check=False)
        if not result.success:
            return None
        return Path(result.stdout.strip())

    async def get_remote_urls(self, repo_path: Path) -> list[str]:
        """Return the fetch URLs of every configured remote."""
        result = await self._run_command(repo_path, ["remote", "-v"], check=False)
        urls: list[str] = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[2] == "(fetch)" and parts[1] not in urls:
                urls.append(parts[1])
        return urls

    async def is_valid_reference(self, repo_path: Path, revision: str) -> bool:
        """Check whether revision names a commit known to the repository."""
        self._validate_revision(revision)
        result = await self._run_command(
            repo_path,
            ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
            check=False,
        )
        return result.success

    async def fetch_all(self, repo_path: Path) -> None:
        """Fetch every remote of the repository."""
        await self._run_command(
            repo_path,
            ["fetch", "--all", "--quiet"],
            timeout=self._fetch_timeout,
        )

    async def diff(
        self,
        repo_path: Path,
        revision: str,
        target_revision: str,
        relative_path: str,
        whole_file: bool = False,
    ) -> str:
        """Return the unified diff of one file between two revisions.

        Args:
            repo_path: Repository working tree root.
            revision: Source revision.
            target_revision: Target revision.
            relative_path: File path relative to repo_path.
            whole_file: Emit the whole file as hunk context.

        Returns:
            Unified diff text; empty when the file did not change.
        """
        self._validate_revision(revision)
        self._validate_revision(target_revision)
        self._validate_path(relative_path)

        args = ["diff", "--no-color", "--no-ext-diff"]
        if whole_file:
            args.append(f"--unified={self.WHOLE_FILE_CONTEXT}")
        args.extend([revision, target_revision, "--", relative_path])

        result = await self._run_command(repo_path, args)
        return result.stdout

    async def show_file(self, repo_path: Path, revision: str, relative_path: str) -> str | None:
        """Return the content of a file at a revision, or None if absent."""
        self._validate_revision(revision)
        self._validate_path(relative_path)
        result = await self._run_command(
            repo_path,
            ["show", f"{revision}:{relative_path}"],
            check=False,
        )
        if not result.success:
            return None
        return result.stdout

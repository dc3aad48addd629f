"""Tests for safe subprocess wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from trace_locator.utils.safe_subprocess import (
    CommandResult,
    CommandTimeoutError,
    GitCommandError,
    GitNotFoundError,
    SafeGitCli,
)
from trace_locator.utils.security import SecurityError

REPO = Path("/srv/shop")


def completed(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.stdout = stdout
    proc.stderr = stderr
    proc.returncode = returncode
    return proc


@pytest.fixture
def git() -> SafeGitCli:
    """Create a SafeGitCli instance with mocked git path."""
    with patch("shutil.which", return_value="/usr/bin/git"):
        return SafeGitCli()


class TestCommandResult:
    """Test CommandResult dataclass."""

    def test_success_true(self) -> None:
        result = CommandResult(stdout="ok", stderr="", return_code=0, command=["git", "status"])
        assert result.success is True

    def test_success_false(self) -> None:
        result = CommandResult(stdout="", stderr="fatal", return_code=128, command=["git", "x"])
        assert result.success is False


class TestSafeGitCliInit:
    """Test SafeGitCli initialization."""

    def test_finds_git_in_path(self, git: SafeGitCli) -> None:
        assert git._git_path == "/usr/bin/git"

    def test_uses_custom_path(self) -> None:
        git = SafeGitCli(git_path="/opt/git/bin/git")
        assert git._git_path == "/opt/git/bin/git"

    def test_raises_if_git_not_found(self) -> None:
        with (
            patch("shutil.which", return_value=None),
            pytest.raises(GitNotFoundError, match="git executable not found"),
        ):
            SafeGitCli()


class TestRevisionValidation:
    """Revisions never reach the command line unchecked."""

    @pytest.mark.asyncio
    async def test_rejects_malicious_revisions(
        self, git: SafeGitCli, malicious_revisions: list[str]
    ) -> None:
        with patch("subprocess.run") as mock_run:
            for revision in malicious_revisions:
                with pytest.raises(SecurityError, match="Invalid git revision"):
                    await git.is_valid_reference(REPO, revision)
                with pytest.raises(SecurityError):
                    await git.diff(REPO, "HEAD", revision, "a.js")
                with pytest.raises(SecurityError):
                    await git.show_file(REPO, revision, "a.js")
            mock_run.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_paths_outside_repository(self, git: SafeGitCli) -> None:
        with patch("subprocess.run") as mock_run:
            for path in ("../../etc/passwd", "/etc/passwd", ""):
                with pytest.raises(SecurityError, match="Invalid repository path"):
                    await git.show_file(REPO, "HEAD", path)
                with pytest.raises(SecurityError):
                    await git.diff(REPO, "abc1234", "HEAD", path)
            mock_run.assert_not_called()


class TestSafeGitCliCommands:
    """Test the argument lists handed to subprocess.run."""

    @pytest.mark.asyncio
    async def test_is_valid_reference(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed("abc\n")) as mock_run:
            assert await git.is_valid_reference(REPO, "abc1234") is True

        cmd = mock_run.call_args.args[0]
        assert cmd == [
            "/usr/bin/git",
            "-C",
            "/srv/shop",
            "rev-parse",
            "--verify",
            "--quiet",
            "abc1234^{commit}",
        ]
        assert mock_run.call_args.kwargs["shell"] is False

    @pytest.mark.asyncio
    async def test_unknown_reference(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed(returncode=1)):
            assert await git.is_valid_reference(REPO, "abc1234") is False

    @pytest.mark.asyncio
    async def test_diff_whole_file(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed("@@ -1 +1 @@\n-a\n+b\n")) as mock_run:
            diff = await git.diff(REPO, "abc1234", "HEAD", "src/a.js", whole_file=True)

        assert diff.startswith("@@")
        cmd = mock_run.call_args.args[0]
        assert f"--unified={SafeGitCli.WHOLE_FILE_CONTEXT}" in cmd
        assert cmd[-4:] == ["abc1234", "HEAD", "--", "src/a.js"]

    @pytest.mark.asyncio
    async def test_diff_failure_raises(self, git: SafeGitCli) -> None:
        with (
            patch("subprocess.run", return_value=completed(stderr="fatal: bad object", returncode=128)),
            pytest.raises(GitCommandError, match="bad object") as exc_info,
        ):
            await git.diff(REPO, "abc1234", "HEAD", "src/a.js")
        assert exc_info.value.return_code == 128

    @pytest.mark.asyncio
    async def test_show_file(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed("contents\n")) as mock_run:
            assert await git.show_file(REPO, "HEAD", "src/a.js") == "contents\n"
        assert mock_run.call_args.args[0][-2:] == ["show", "HEAD:src/a.js"]

    @pytest.mark.asyncio
    async def test_show_missing_file(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed(returncode=128)):
            assert await git.show_file(REPO, "HEAD", "src/gone.js") is None

    @pytest.mark.asyncio
    async def test_get_toplevel(self, git: SafeGitCli) -> None:
        with patch("subprocess.run", return_value=completed("/srv/shop\n")):
            assert await git.get_toplevel(REPO / "src") == Path("/srv/shop")
        with patch("subprocess.run", return_value=completed(returncode=128)):
            assert await git.get_toplevel(Path("/tmp")) is None

    @pytest.mark.asyncio
    async def test_get_remote_urls(self, git: SafeGitCli) -> None:
        output = (
            "origin\tgit@github.com:acme/shop.git (fetch)\n"
            "origin\tgit@github.com:acme/shop.git (push)\n"
            "upstream\thttps://github.com/upstream/shop.git (fetch)\n"
        )
        with patch("subprocess.run", return_value=completed(output)):
            assert await git.get_remote_urls(REPO) == [
                "git@github.com:acme/shop.git",
                "https://github.com/upstream/shop.git",
            ]

    @pytest.mark.asyncio
    async def test_fetch_uses_fetch_timeout(self) -> None:
        with patch("shutil.which", return_value="/usr/bin/git"):
            git = SafeGitCli(default_timeout=5, fetch_timeout=90)
        with patch("subprocess.run", return_value=completed()) as mock_run:
            await git.fetch_all(REPO)
        assert mock_run.call_args.kwargs["timeout"] == 90
        assert mock_run.call_args.args[0][-3:] == ["fetch", "--all", "--quiet"]


class TestSafeGitCliTimeout:
    """Test timeout handling."""

    @pytest.mark.asyncio
    async def test_subprocess_timeout_raises_error(self, git: SafeGitCli) -> None:
        with (
            patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["git"], 30)),
            pytest.raises(CommandTimeoutError),
        ):
            await git.fetch_all(REPO)

    @pytest.mark.asyncio
    async def test_thread_timeout_raises_error(self, git: SafeGitCli) -> None:
        with patch("asyncio.to_thread", new_callable=AsyncMock) as mock_thread:
            mock_thread.side_effect = TimeoutError()

            with pytest.raises(CommandTimeoutError):
                await git.is_valid_reference(REPO, "HEAD")

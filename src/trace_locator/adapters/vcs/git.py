"""Git VCS adapter using the git CLI.

This module implements the VCSProvider protocol on top of the SafeGitCli
wrapper. Repositories are discovered under the configured workspace roots
and identified by their normalised remote URLs (``github.com/owner/repo``)
and by their directory names.

Security features:
- Revisions validated before use
- No shell invocation
- Timeout enforcement on all operations
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path

import structlog
from cachetools import TTLCache

from ...config.schema import GitConfig, RetryConfig, WorkspaceConfig
from ...utils.async_helpers import retry_from_config
from ...utils.logging import LogEventNames
from ...utils.safe_subprocess import CommandTimeoutError, GitCommandError, SafeGitCli

log = structlog.get_logger()

# scp-like syntax: git@github.com:owner/repo.git
SCP_URL_PATTERN = re.compile(r"^(?:[^@/]+@)?([^:/]+):(?!//)(.+)$")
# URL syntax: https://user@host:443/owner/repo.git, ssh://git@host/owner/repo
URL_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*://(?:[^@/]+@)?([^/:]+)(?::\d+)?/(.+)$", re.I)


def normalize_remote_url(url: str) -> str:
    """Reduce a remote URL or repository id to ``host/owner/repo`` form.

    Values that are not URLs are returned lower-cased with surrounding
    slashes and a ``.git`` suffix removed.
    """
    value = url.strip()
    match = URL_PATTERN.match(value) or SCP_URL_PATTERN.match(value)
    if match:
        value = f"{match.group(1)}/{match.group(2)}"
    value = value.strip("/")
    if value.endswith(".git"):
        value = value[: -len(".git")]
    return value.lower()


class GitAdapter:
    """Git adapter implementing the VCSProvider protocol.

    Example:
        adapter = GitAdapter(config.git, config.workspace, config.retry)
        repo_path = await adapter.get_repository_path("github.com/acme/shop")
        if repo_path and await adapter.is_valid_reference(repo_path, sha):
            diff = await adapter.get_diff_between_commits(sha, "HEAD", file_path, True)
    """

    def __init__(
        self,
        git_config: GitConfig,
        workspace_config: WorkspaceConfig,
        retry_config: RetryConfig | None = None,
        git: SafeGitCli | None = None,
    ) -> None:
        """Initialize the git adapter.

        Args:
            git_config: Git CLI configuration.
            workspace_config: Roots searched for repositories.
            retry_config: Retry policy for fetching remotes.
            git: Git CLI wrapper. If None, one is created from git_config.
        """
        self._config = git_config
        self._workspace = workspace_config
        self._git = git or SafeGitCli(
            git_path=git_config.git_path,
            default_timeout=git_config.command_timeout,
            fetch_timeout=git_config.fetch_timeout,
        )

        # Repository discovery: repo id -> working tree root
        self._repo_cache: TTLCache[str, dict[str, Path]] = TTLCache(
            maxsize=1,
            ttl=workspace_config.index_cache_ttl,
        )
        self._toplevel_cache: TTLCache[Path, Path | None] = TTLCache(
            maxsize=1024,
            ttl=workspace_config.index_cache_ttl,
        )
        self._discovery_lock = asyncio.Lock()

        self._fetch_with_retry = retry_from_config(
            retry_config or RetryConfig(), (CommandTimeoutError,)
        )(self._git.fetch_all)

    async def get_repository_path(self, repo_id: str) -> str | None:
        repositories = await self._get_repositories()
        repo_path = repositories.get(normalize_remote_url(repo_id))
        return str(repo_path) if repo_path else None

    async def get_repository_name(self, repo_id: str) -> str | None:
        repositories = await self._get_repositories()
        repo_path = repositories.get(normalize_remote_url(repo_id))
        if repo_path:
            return repo_path.name

        normalized = normalize_remote_url(repo_id)
        if "/" in normalized:
            return normalized.rsplit("/", 1)[-1]
        return None

    async def is_valid_reference(self, repo_path: str, sha: str) -> bool:
        return await self._git.is_valid_reference(Path(repo_path), sha)

    async def fetch_all_remotes(self, repo_path: str) -> None:
        log.info("fetching_all_remotes", repo_path=repo_path)
        await self._fetch_with_retry(Path(repo_path))

    async def get_diff_between_commits(
        self,
        sha: str,
        target_sha: str,
        file_path: str,
        whole_file: bool = False,
    ) -> str | None:
        located = await self._locate(file_path)
        if located is None:
            return None
        repo_root, relative_path = located

        try:
            return await self._git.diff(
                repo_root,
                sha,
                target_sha,
                relative_path,
                whole_file=whole_file and self._config.whole_file_diffs,
            )
        except GitCommandError as e:
            log.warning(
                LogEventNames.GIT_COMMAND_FAILED,
                operation="diff",
                file_path=file_path,
                error=str(e),
            )
            return None

    async def get_file_content_for_revision(self, file_path: str, revision: str) -> str | None:
        located = await self._locate(file_path)
        if located is None:
            return None
        repo_root, relative_path = located
        return await self._git.show_file(repo_root, revision, relative_path)

    async def _locate(self, file_path: str) -> tuple[Path, str] | None:
        """Return (working tree root, repo relative posix path) for a file."""
        directory = Path(file_path).parent
        if directory in self._toplevel_cache:
            repo_root = self._toplevel_cache[directory]
        else:
            repo_root = await self._git.get_toplevel(directory)
            self._toplevel_cache[directory] = repo_root

        if repo_root is None:
            log.debug("file_outside_repository", file_path=file_path)
            return None

        relative_path = Path(os.path.relpath(Path(file_path).resolve(), repo_root.resolve()))
        return repo_root, relative_path.as_posix()

    async def _get_repositories(self) -> dict[str, Path]:
        async with self._discovery_lock:
            cached = self._repo_cache.get("repositories")
            if cached is not None:
                return cached

            repositories: dict[str, Path] = {}
            for repo_root in await asyncio.to_thread(self._find_working_trees):
                for remote_url in await self._git.get_remote_urls(repo_root):
                    repositories.setdefault(normalize_remote_url(remote_url), repo_root)
                repositories.setdefault(repo_root.name.lower(), repo_root)

            log.debug("repositories_discovered", count=len(set(repositories.values())))
            self._repo_cache["repositories"] = repositories
            return repositories

    def _find_working_trees(self) -> list[Path]:
        """Workspace roots and their direct children that hold a ``.git`` entry."""
        working_trees: list[Path] = []
        for root in self._workspace.roots:
            if not root.is_dir():
                continue
            candidates = [root]
            candidates.extend(
                sorted(
                    child
                    for child in root.iterdir()
                    if child.is_dir() and child.name not in self._workspace.exclude_dirs
                )
            )
            for candidate in candidates:
                if (candidate / ".git").exists() and candidate not in working_trees:
                    working_trees.append(candidate)
        return working_trees

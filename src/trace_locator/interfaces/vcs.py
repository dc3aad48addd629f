"""Abstract interfaces for version control queries."""

from typing import Protocol


class VCSProvider(Protocol):
    """Version control queries needed to carry positions across commits.

    Paths are absolute file system paths. Implementations are expected to
    enforce their own request timeouts.
    """

    async def get_repository_path(self, repo_id: str) -> str | None:
        """
        Find the local working tree for a repository id.

        Args:
            repo_id: Repository identifier as recorded with the error

        Returns:
            Absolute path of the working tree root, None if not open locally
        """
        ...

    async def get_repository_name(self, repo_id: str) -> str | None:
        """
        Return a human readable name for a repository id, if one is known.
        """
        ...

    async def is_valid_reference(self, repo_path: str, sha: str) -> bool:
        """
        Check whether a commit exists in the local repository.

        Args:
            repo_path: Working tree root
            sha: Commit sha or other revision

        Returns:
            True if the revision resolves to a commit
        """
        ...

    async def fetch_all_remotes(self, repo_path: str) -> None:
        """
        Fetch every remote of the repository.

        Raises:
            GitCliError: If fetching fails
        """
        ...

    async def get_diff_between_commits(
        self,
        sha: str,
        target_sha: str,
        file_path: str,
        whole_file: bool = False,
    ) -> str | None:
        """
        Unified diff of a single file between two revisions.

        Args:
            sha: Source revision
            target_sha: Target revision (e.g. "HEAD")
            file_path: Absolute path of the file
            whole_file: Request the whole file as hunk context

        Returns:
            Unified diff text ("" when unchanged), None if no diff can be produced
        """
        ...

    async def get_file_content_for_revision(self, file_path: str, revision: str) -> str | None:
        """
        Read a file as it exists at a revision.

        Returns:
            File contents, None if the file does not exist at that revision
        """
        ...


class RepositoryMappings(Protocol):
    """Stored repository id to local path associations."""

    async def get_by_repo_id(self, repo_id: str) -> str | None:
        """Return the mapped working tree path, None if unmapped."""
        ...

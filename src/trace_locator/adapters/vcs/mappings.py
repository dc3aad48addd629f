"""Repository id to path mappings taken from configuration."""

from pathlib import Path

from .git import normalize_remote_url


class ConfigRepositoryMappings:
    """RepositoryMappings backed by the ``repositories`` config section.

    Ids are compared after the same normalisation applied to remote URLs, so
    ``git@github.com:Acme/Shop.git`` and ``github.com/acme/shop`` are the
    same repository.
    """

    def __init__(self, repositories: dict[str, Path]) -> None:
        self._repositories = {
            normalize_remote_url(repo_id): path for repo_id, path in repositories.items()
        }

    async def get_by_repo_id(self, repo_id: str) -> str | None:
        path = self._repositories.get(normalize_remote_url(repo_id))
        return str(path) if path else None

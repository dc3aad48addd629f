"""File search over the local workspace.

The index lists every file under the configured workspace roots once per
cache period and answers searches by file name. Choosing among the
candidates is left to the path matcher.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import structlog
from cachetools import TTLCache

from ...config.schema import WorkspaceConfig
from ...utils.logging import LogEventNames

log = structlog.get_logger()


class WorkspaceFileIndex:
    """FileSearchProvider backed by a cached directory walk.

    Example:
        index = WorkspaceFileIndex(config.workspace)
        await index.search_files("/app/src/orders/service.js")
        # ['/home/dev/shop/src/orders/service.js', '/home/dev/shop/test/service.js']
    """

    def __init__(self, config: WorkspaceConfig) -> None:
        self._config = config
        # root -> {file name: [absolute paths]}
        self._listing_cache: TTLCache[Path, dict[str, list[str]]] = TTLCache(
            maxsize=max(len(config.roots), 1),
            ttl=config.index_cache_ttl,
        )
        self._lock = asyncio.Lock()

    async def search_files(self, path_fragment: str) -> list[str]:
        file_name = path_fragment.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
        if not file_name:
            return []

        matches: list[str] = []
        for root in self._config.roots:
            listing = await self._get_listing(root)
            matches.extend(listing.get(file_name, []))
        return matches

    async def _get_listing(self, root: Path) -> dict[str, list[str]]:
        async with self._lock:
            cached = self._listing_cache.get(root)
            if cached is not None:
                log.debug(LogEventNames.INDEX_CACHE_HIT, root=str(root))
                return cached

            listing = await asyncio.to_thread(self._walk, root)
            self._listing_cache[root] = listing
            return listing

    def _walk(self, root: Path) -> dict[str, list[str]]:
        listing: dict[str, list[str]] = {}
        excluded = set(self._config.exclude_dirs)
        file_count = 0

        for directory, dir_names, file_names in os.walk(root):
            dir_names[:] = sorted(name for name in dir_names if name not in excluded)
            for file_name in sorted(file_names):
                if file_count >= self._config.max_files:
                    log.warning(
                        "workspace_index_truncated",
                        root=str(root),
                        max_files=self._config.max_files,
                    )
                    return listing
                path = Path(directory, file_name).as_posix()
                listing.setdefault(file_name, []).append(path)
                file_count += 1

        log.info(LogEventNames.INDEX_BUILT, root=str(root), files=file_count)
        return listing

    def invalidate(self) -> None:
        """Forget cached listings, e.g. after files were created."""
        self._listing_cache.clear()

"""Abstract interfaces for the developer's workspace."""

from typing import Protocol


class FileSearchProvider(Protocol):
    """Searches the files known to exist in the workspace."""

    async def search_files(self, path_fragment: str) -> list[str]:
        """
        Find workspace files that may correspond to a recorded path.

        Args:
            path_fragment: A recorded path, absolute or partial

        Returns:
            Absolute paths of candidate files (those sharing the file name)
        """
        ...


class DocumentStore(Protocol):
    """Access to documents currently open in the editor."""

    def get_text(self, uri: str) -> str | None:
        """
        Return the live text of an open document.

        Args:
            uri: Document URI, e.g. "file:///src/app.js"

        Returns:
            Buffer contents including unsaved edits, None if not open
        """
        ...

"""In-memory store of documents open in an editor."""

from pathlib import Path


class OpenDocumentStore:
    """DocumentStore holding the live text of open buffers by URI.

    Paths given to ``open`` are converted to ``file://`` URIs, the form the
    resolver looks documents up by.
    """

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}

    @staticmethod
    def to_uri(path_or_uri: str) -> str:
        if path_or_uri.startswith("file://"):
            return path_or_uri
        return "file://" + Path(path_or_uri).as_posix()

    def open(self, path_or_uri: str, text: str) -> None:
        """Record (or replace) the buffer text of a document."""
        self._documents[self.to_uri(path_or_uri)] = text

    def close(self, path_or_uri: str) -> None:
        self._documents.pop(self.to_uri(path_or_uri), None)

    def get_text(self, uri: str) -> str | None:
        return self._documents.get(uri)

    def __len__(self) -> int:
        return len(self._documents)

"""Concrete implementations of provider interfaces."""

from .vcs.git import GitAdapter
from .vcs.mappings import ConfigRepositoryMappings
from .workspace.documents import OpenDocumentStore
from .workspace.file_index import WorkspaceFileIndex

__all__ = [
    "ConfigRepositoryMappings",
    "GitAdapter",
    "OpenDocumentStore",
    "WorkspaceFileIndex",
]

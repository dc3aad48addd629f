"""Protocol definitions for pluggable adapters."""

from .vcs import RepositoryMappings, VCSProvider
from .workspace import DocumentStore, FileSearchProvider

__all__ = ["DocumentStore", "FileSearchProvider", "RepositoryMappings", "VCSProvider"]

"""Collaborator interfaces and the file-system content store."""

from memory_bank.stores.base import ContentStore, SummaryStore, VectorIndex
from memory_bank.stores.file_content_store import FileContentStore

__all__ = ["ContentStore", "SummaryStore", "VectorIndex", "FileContentStore"]

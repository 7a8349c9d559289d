"""Database repositories."""

from memory_bank.db.repositories.item_repository import SqliteVectorIndex
from memory_bank.db.repositories.summary_repository import SqliteSummaryStore

__all__ = ["SqliteVectorIndex", "SqliteSummaryStore"]

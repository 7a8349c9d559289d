"""Database layer."""

from memory_bank.db.database import Database

__all__ = ["Database"]

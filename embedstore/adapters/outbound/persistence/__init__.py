"""Index persistence adapters."""

from .sqlite_adapter import SQLiteIndexRepository

__all__ = ["SQLiteIndexRepository"]

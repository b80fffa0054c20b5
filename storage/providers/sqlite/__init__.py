"""SQLite storage provider implementations."""

from .thread_repo import SQLiteThreadRepo

__all__ = [
    "SQLiteThreadRepo",
]

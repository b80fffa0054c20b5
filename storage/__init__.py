from .checkpointer import CheckpointerRegistry
from .contracts import ThreadRepo
from .providers.sqlite import SQLiteThreadRepo

__all__ = [
    "CheckpointerRegistry",
    "ThreadRepo",
    "SQLiteThreadRepo",
]

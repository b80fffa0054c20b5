"""Sandbox interfaces: ABC + data classes for executor and filesystem.

Re-exports everything from executor and filesystem submodules.
"""

from sandbox.interfaces.executor import (
    BaseExecutor,
    ExecuteResult,
)
from sandbox.interfaces.filesystem import (
    BinaryReadResult,
    DirListResult,
    FileEntry,
    FileReadResult,
    FileSystemBackend,
    FileWriteResult,
    GrepMatch,
)

__all__ = [
    # Executor
    "BaseExecutor",
    "ExecuteResult",
    # Filesystem
    "FileSystemBackend",
    "FileReadResult",
    "BinaryReadResult",
    "FileWriteResult",
    "FileEntry",
    "DirListResult",
    "GrepMatch",
]

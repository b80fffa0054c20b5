"""Sandbox ABC: unified interface for execution environments.

A Sandbox bundles sub-capabilities by interaction surface:
- fs()    → FileSystemBackend  (consumed by the workspace tools)
- shell() → BaseExecutor       (consumed by the execute tool)

An instance is bound to exactly one workspace root for its whole life.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sandbox.interfaces.executor import BaseExecutor
    from sandbox.interfaces.filesystem import FileSystemBackend


class Sandbox(ABC):
    """Abstract sandbox, one instance per (thread, workspace root)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier: 'local', ..."""
        ...

    @property
    @abstractmethod
    def working_dir(self) -> str:
        """Absolute workspace root."""
        ...

    @abstractmethod
    def fs(self) -> FileSystemBackend:
        ...

    @abstractmethod
    def shell(self) -> BaseExecutor:
        ...

    def close(self) -> None:
        """Clean up on session teardown. Default: no-op."""
        pass

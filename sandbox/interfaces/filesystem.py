"""FileSystem backend abstraction.

Paths handed to a backend are workspace paths ("/" is the workspace root);
results report the same virtual form so callers never see host layout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field


@dataclass
class FileEntry:
    """Single listing entry."""

    path: str
    is_dir: bool
    size: int | None = None
    modified_at: str | None = None  # ISO-8601, files only

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class FileReadResult:
    """Text file content."""

    path: str
    content: str
    size: int = 0
    modified_at: str | None = None


@dataclass
class BinaryReadResult:
    """Binary file content, base64 encoded for transport."""

    path: str
    content: str
    size: int = 0
    modified_at: str | None = None
    encoding: str = "base64"


@dataclass
class FileWriteResult:
    """Result of a write or edit."""

    path: str
    success: bool
    error: str | None = None
    occurrences: int | None = None  # edits only


@dataclass
class GrepMatch:
    path: str
    line: int
    text: str


@dataclass
class DirListResult:
    """Result of listing a directory."""

    entries: list[FileEntry] = field(default_factory=list)
    error: str | None = None


class FileSystemBackend(ABC):
    """Abstract backend for workspace file I/O.

    Every method validates its path against the workspace boundary first and
    raises AccessDenied without touching the filesystem on violation.
    """

    @abstractmethod
    def ls(self, path: str = "/") -> DirListResult:
        """List one directory level (hidden and noise entries skipped)."""
        ...

    @abstractmethod
    def walk(self, path: str = "/") -> list[FileEntry]:
        """Recursive listing, directories before their children."""
        ...

    @abstractmethod
    def read_text(self, path: str, offset: int = 0, limit: int | None = None) -> FileReadResult:
        """Read a UTF-8 text file.

        Args:
            path: Workspace path
            offset: First line to return (0-based)
            limit: Max lines to return (None = all)

        Raises:
            FileNotFoundError: File does not exist
            IsADirectoryError: Path is a directory
        """
        ...

    @abstractmethod
    def read_binary(self, path: str) -> BinaryReadResult:
        """Read any file as base64 text."""
        ...

    @abstractmethod
    def write_file(self, path: str, content: str) -> FileWriteResult:
        """Write content to file, creating parent dirs as needed."""
        ...

    @abstractmethod
    def edit_file(self, path: str, old_string: str, new_string: str, replace_all: bool = False) -> FileWriteResult:
        """Replace an exact string; must be unique unless replace_all."""
        ...

    @abstractmethod
    def glob(self, pattern: str, path: str = "/") -> list[FileEntry]:
        ...

    @abstractmethod
    def grep(self, pattern: str, path: str = "/", glob: str | None = None) -> list[GrepMatch]:
        ...

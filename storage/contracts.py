"""Storage repository contracts."""

from __future__ import annotations

from typing import Any, Protocol


class ThreadRepo(Protocol):
    """Persistence contract for thread metadata.

    The metadata blob is opaque JSON; callers own the shape of every key
    they read or write.
    """

    def create_thread(self, thread_id: str, metadata: dict[str, Any] | None = None) -> None:
        """Insert a thread row. Existing rows are left untouched."""

    def get_metadata(self, thread_id: str) -> dict[str, Any] | None:
        """Load the metadata blob, or None when the thread is unknown."""

    def update_metadata(self, thread_id: str, metadata: dict[str, Any]) -> None:
        """Replace the metadata blob, creating the row if needed."""

    def delete_thread(self, thread_id: str) -> None:
        """Remove the thread row if present."""

    def close(self) -> None:
        """Release the underlying connection."""

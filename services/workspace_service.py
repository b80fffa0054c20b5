"""Workspace management service.

A thread's workspace folder lives in its metadata blob under
`workspacePath`. File views for the UI read through the same boundary
guard the agent's tools use.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from core.errors import MissingThreadId, MissingWorkspace
from sandbox.local import LocalBackend
from storage.contracts import ThreadRepo

logger = logging.getLogger(__name__)

WORKSPACE_PATH_KEY = "workspacePath"


def get_workspace_path(repo: ThreadRepo, thread_id: str) -> str | None:
    if not thread_id:
        raise MissingThreadId()
    metadata = repo.get_metadata(thread_id)
    if not metadata:
        return None
    return metadata.get(WORKSPACE_PATH_KEY) or None


def set_workspace_path(repo: ThreadRepo, thread_id: str, path: str | None) -> str | None:
    """Bind (or with None, unbind) a thread's workspace folder.

    Returns the stored path, or None when the thread is unknown.
    """
    if not thread_id:
        raise MissingThreadId()
    metadata = repo.get_metadata(thread_id)
    if metadata is None:
        return None

    if path:
        folder = Path(path).expanduser().resolve()
        if not folder.is_dir():
            raise NotADirectoryError(f"Workspace folder does not exist: {path}")
        path = str(folder)

    metadata[WORKSPACE_PATH_KEY] = path
    repo.update_metadata(thread_id, metadata)
    logger.info("[Workspace] Thread %s workspace set to %s", thread_id, path)
    return path


def _backend_for(repo: ThreadRepo, thread_id: str) -> tuple[str, LocalBackend]:
    workspace_path = get_workspace_path(repo, thread_id)
    if not workspace_path:
        raise MissingWorkspace("No workspace folder linked. Please select a workspace folder for this thread.")
    return workspace_path, LocalBackend(workspace_path)


def load_from_disk(repo: ThreadRepo, thread_id: str) -> dict[str, Any]:
    """Recursive listing of the thread's workspace for the file view."""
    workspace_path, backend = _backend_for(repo, thread_id)
    files = backend.walk("/")
    return {
        "success": True,
        "workspace_path": workspace_path,
        "files": [f.to_dict() for f in files],
    }


def read_file(repo: ThreadRepo, thread_id: str, file_path: str) -> dict[str, Any]:
    """Read a workspace text file.

    Raises:
        MissingWorkspace: thread has no folder
        AccessDenied: path escapes the workspace
        FileNotFoundError / IsADirectoryError: nothing readable at path
    """
    _, backend = _backend_for(repo, thread_id)
    result = backend.read_text(file_path)
    return {
        "success": True,
        "path": result.path,
        "content": result.content,
        "size": result.size,
        "modified_at": result.modified_at,
    }


def read_binary_file(repo: ThreadRepo, thread_id: str, file_path: str) -> dict[str, Any]:
    """Read a workspace file as base64 text (images, PDFs, ...)."""
    _, backend = _backend_for(repo, thread_id)
    result = backend.read_binary(file_path)
    return {
        "success": True,
        "path": result.path,
        "content": result.content,
        "encoding": result.encoding,
        "size": result.size,
        "modified_at": result.modified_at,
    }

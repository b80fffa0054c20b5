"""Workspace boundary guard.

Pure functions mapping (workspace root, workspace path) to a canonical host
path. "/" denotes the workspace root. An absolute host path that already
points inside the root is accepted as-is, since agents are prompted with
absolute paths. The canonical result must stay inside the root after
symlinks and ".." are resolved, otherwise AccessDenied is raised.
"""

from __future__ import annotations

import os
from pathlib import Path

from core.errors import AccessDenied


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def resolve_workspace_path(root: str | Path, path: str | None) -> Path:
    """Resolve a workspace path to a validated absolute host path.

    Args:
        root: Workspace root (absolute, existing directory)
        path: Workspace path ("/" = root) or absolute host path inside root

    Returns:
        Canonical absolute path inside root

    Raises:
        AccessDenied: Resolved path lies outside root
    """
    raw = path or "/"
    root_abs = Path(os.path.abspath(root))
    root_real = root_abs.resolve()

    if "\x00" in raw:
        raise AccessDenied(raw, str(root_real))

    candidate = Path(raw)
    if candidate.is_absolute():
        normalized = Path(os.path.normpath(candidate))
        if _is_within(normalized, root_abs) or _is_within(normalized, root_real):
            target = normalized
        else:
            target = root_real / raw.lstrip("/")
    else:
        target = root_real / raw

    resolved = target.resolve()
    if not _is_within(resolved, root_real):
        raise AccessDenied(raw, str(root_real))
    return resolved


def to_workspace_path(root: str | Path, absolute: str | Path) -> str:
    """Inverse of resolve_workspace_path for paths already inside root."""
    relative = Path(absolute).relative_to(Path(root).resolve()).as_posix()
    return "/" if relative == "." else f"/{relative}"

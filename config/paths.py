"""Per-installation storage locations.

Priority: OPENWORK_HOME env > ~/.openwork (default)
"""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path

_SAFE_THREAD_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def get_openwork_dir() -> Path:
    """Return the per-installation directory, creating it if needed."""
    env_home = os.getenv("OPENWORK_HOME")
    path = Path(env_home).expanduser() if env_home else Path.home() / ".openwork"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    return get_openwork_dir() / "config.json"


def get_db_path() -> Path:
    """Thread metadata database."""
    return get_openwork_dir() / "openwork.sqlite"


def get_thread_checkpoint_dir() -> Path:
    path = get_openwork_dir() / "threads"
    path.mkdir(parents=True, exist_ok=True)
    return path


def thread_checkpoint_filename(thread_id: str) -> str:
    """Deterministic store file name for a thread.

    Ids that are already safe file names are used verbatim so existing stores
    keep working; anything else is hashed.
    """
    if _SAFE_THREAD_ID.match(thread_id) and ".." not in thread_id:
        return f"{thread_id}.sqlite"
    digest = hashlib.sha256(thread_id.encode("utf-8")).hexdigest()
    return f"{digest}.sqlite"

"""Sandbox: infrastructure layer for workspace-confined execution.

Usage:
    from sandbox import LocalSandbox

    sbx = LocalSandbox("/home/me/project", timeout=120)
    sbx.fs().ls("/")
    await sbx.shell().execute("ls -la")
"""

from sandbox.base import Sandbox
from sandbox.local import LocalBackend, LocalSandbox, LocalShellExecutor
from sandbox.workspace import resolve_workspace_path, to_workspace_path

__all__ = [
    "Sandbox",
    "LocalSandbox",
    "LocalBackend",
    "LocalShellExecutor",
    "resolve_workspace_path",
    "to_workspace_path",
]

"""Error taxonomy for the agent session runtime.

Every error carries a message that tells the user how to fix the condition
(select a folder, configure a key, add a model). Missing files use the
built-in FileNotFoundError; command timeouts and output truncation are
reported as flags on ExecuteResult instead of exceptions.
"""

from __future__ import annotations


class OpenworkError(Exception):
    """Base class for runtime errors surfaced to the UI."""


class MissingThreadId(OpenworkError, ValueError):
    def __init__(self, message: str = "Thread ID is required for checkpointing.") -> None:
        super().__init__(message)


class MissingWorkspace(OpenworkError, ValueError):
    def __init__(
        self,
        message: str = "Workspace path is required. Please select a workspace folder before running the agent.",
    ) -> None:
        super().__init__(message)


class AccessDenied(OpenworkError, PermissionError):
    """Raised when a path resolves outside the workspace root."""

    def __init__(self, path: str, root: str) -> None:
        super().__init__(f"Access denied: path outside workspace: {path!r} (workspace: {root})")
        self.path = path
        self.root = root


class CredentialMissing(OpenworkError):
    def __init__(self, message: str = "API key not configured. Please add your API key in settings.") -> None:
        super().__init__(message)


class NoDefaultModel(OpenworkError):
    def __init__(self, message: str = "No default model configured. Please add a model in settings.") -> None:
        super().__init__(message)

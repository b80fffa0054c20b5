"""Thread-level session lookup.

Reads a thread's bound folder and model from its metadata blob and asks
the runtime for a session. Every other metadata key is left untouched.
"""

from __future__ import annotations

import logging

from agent import AgentRuntime, AgentSession
from core.errors import MissingThreadId
from services.workspace_service import get_workspace_path
from storage.contracts import ThreadRepo

logger = logging.getLogger(__name__)

MODEL_KEY = "model"


def get_thread_model(repo: ThreadRepo, thread_id: str) -> str | None:
    if not thread_id:
        raise MissingThreadId()
    metadata = repo.get_metadata(thread_id) or {}
    return metadata.get(MODEL_KEY) or None


def set_thread_model(repo: ThreadRepo, thread_id: str, model_id: str | None) -> None:
    """Bind a model to the thread; None falls back to the configured default."""
    if not thread_id:
        raise MissingThreadId()
    metadata = repo.get_metadata(thread_id) or {}
    metadata[MODEL_KEY] = model_id
    repo.update_metadata(thread_id, metadata)


async def get_or_create_session(
    runtime: AgentRuntime,
    repo: ThreadRepo,
    thread_id: str,
    model_id: str | None = None,
) -> AgentSession:
    """Session for a thread, rebuilt when its folder or model changed."""
    workspace_path = get_workspace_path(repo, thread_id)
    model_id = model_id or get_thread_model(repo, thread_id)

    session = runtime.get_session(thread_id)
    if session is not None and workspace_path and session.workspace_path == str(workspace_path):
        if model_id is None or session.model_id == model_id:
            return session

    return await runtime.create_session(thread_id, model_id, workspace_path)


async def delete_thread(runtime: AgentRuntime, repo: ThreadRepo, thread_id: str) -> None:
    """Remove a thread's checkpoint store and metadata row."""
    await runtime.delete_thread(thread_id)
    repo.delete_thread(thread_id)
    logger.info("[Threads] Deleted thread %s", thread_id)

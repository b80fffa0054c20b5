"""
Agent session runtime - one resumable agent session per conversation thread

Composes, per thread:
- Chat model resolved from the user's model configuration
- Durable checkpointer (one SQLite file per thread)
- Local sandbox rooted at the thread's workspace folder
- Snapshot of the process-wide external (MCP) tool pool
- Skills middleware and the workspace system prompt

Shell execution always requires human approval before it runs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from langchain.agents import create_agent
from langchain.agents.middleware import AgentMiddleware, HumanInTheLoopMiddleware
from langchain_core.language_models import BaseChatModel
from langchain_core.tools import BaseTool
from langgraph.checkpoint.base import BaseCheckpointSaver

from config.paths import get_openwork_dir
from config.resolver import ModelResolver
from config.schema import RuntimeSettings
from config.store import ConfigStore
from core.errors import MissingThreadId, MissingWorkspace
from core.mcp import ExternalToolPool
from core.prompts import build_system_prompt
from core.skills import SkillsMiddleware
from core.workspace import EXECUTE_TOOL_NAME, build_workspace_tools
from sandbox.local import LocalSandbox
from storage.checkpointer import CheckpointerRegistry

logger = logging.getLogger(__name__)

# Standing policy: every shell command waits for explicit user approval
INTERRUPT_ON = MappingProxyType({EXECUTE_TOOL_NAME: True})


@dataclass(frozen=True)
class AgentSession:
    """Everything the execution engine needs to run turns on one thread."""

    thread_id: str
    workspace_path: str
    model: BaseChatModel
    checkpointer: BaseCheckpointSaver
    backend: LocalSandbox
    system_prompt: str
    model_id: str | None = None
    local_tools: tuple[BaseTool, ...] = ()
    external_tools: tuple[BaseTool, ...] = ()
    capabilities: tuple[AgentMiddleware, ...] = ()

    @property
    def interrupt_on(self) -> MappingProxyType:
        return INTERRUPT_ON

    @property
    def tools(self) -> list[BaseTool]:
        return [*self.local_tools, *self.external_tools]

    def build_agent(self) -> Any:
        """Hand the composed session to the LangChain agent engine."""
        middleware = [
            HumanInTheLoopMiddleware(interrupt_on=dict(self.interrupt_on)),
            *self.capabilities,
        ]
        return create_agent(
            model=self.model,
            tools=self.tools,
            system_prompt=self.system_prompt,
            middleware=middleware,
            checkpointer=self.checkpointer,
        )

    def config(self) -> dict[str, Any]:
        """RunnableConfig selecting this thread's checkpoint history."""
        return {"configurable": {"thread_id": self.thread_id}}


class AgentRuntime:
    """Owner of per-thread sessions and their resources."""

    def __init__(
        self,
        store: ConfigStore | None = None,
        *,
        resolver: ModelResolver | None = None,
        checkpoints: CheckpointerRegistry | None = None,
        tool_pool: ExternalToolPool | None = None,
        settings: RuntimeSettings | None = None,
        skill_paths: list[str | Path] | None = None,
    ) -> None:
        self.store = store or ConfigStore()
        self.resolver = resolver or ModelResolver(self.store)
        self.settings = settings or self.store.get_runtime_settings()
        self.checkpoints = checkpoints or CheckpointerRegistry()
        self.tool_pool = tool_pool or ExternalToolPool(
            self.store.get_mcp_config(),
            connect_timeout=self.settings.mcp_connect_timeout,
            disconnect_timeout=self.settings.mcp_disconnect_timeout,
        )
        if skill_paths is None:
            skill_paths = [self.settings.skills_dir or get_openwork_dir() / "skills"]
        self.skill_paths = skill_paths

        self._sessions: dict[str, AgentSession] = {}
        # (thread_id, workspace_path) -> sandbox
        self._backends: dict[tuple[str, str], LocalSandbox] = {}
        self._skills: SkillsMiddleware | None = None
        self._locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    async def _lock_for(self, thread_id: str) -> asyncio.Lock:
        async with self._locks_guard:
            if thread_id not in self._locks:
                self._locks[thread_id] = asyncio.Lock()
            return self._locks[thread_id]

    @asynccontextmanager
    async def _thread_lock(self, thread_id: str) -> AsyncIterator[None]:
        """Serialize session lifecycle calls for one thread."""
        while True:
            lock = await self._lock_for(thread_id)
            await lock.acquire()
            if self._locks.get(thread_id) is lock:
                break
            lock.release()
        try:
            yield
        finally:
            lock.release()

    def _skills_middleware(self) -> SkillsMiddleware:
        if self._skills is None:
            self._skills = SkillsMiddleware(self.skill_paths)
        return self._skills

    def _get_backend(self, thread_id: str, workspace_path: str) -> LocalSandbox:
        key = (thread_id, workspace_path)
        backend = self._backends.get(key)
        if backend is not None:
            return backend

        backend = LocalSandbox(
            workspace_path,
            timeout=self.settings.command_timeout,
            max_output_bytes=self.settings.max_output_bytes,
        )
        # A thread is bound to one folder at a time
        self._evict_backends(thread_id)
        self._backends[key] = backend
        logger.info("[Runtime] Sandbox for thread %s rooted at %s", thread_id, backend.working_dir)
        return backend

    def _evict_backends(self, thread_id: str) -> None:
        for key in [k for k in self._backends if k[0] == thread_id]:
            self._backends.pop(key).close()

    def get_session(self, thread_id: str) -> AgentSession | None:
        return self._sessions.get(thread_id)

    async def create_session(
        self,
        thread_id: str,
        model_id: str | None = None,
        workspace_path: str | None = None,
    ) -> AgentSession:
        """Assemble a session for a thread.

        Raises:
            MissingThreadId: thread_id is empty
            MissingWorkspace: workspace_path is empty
            CredentialMissing / NoDefaultModel: model cannot be resolved
            NotADirectoryError: workspace folder does not exist
        """
        if not thread_id:
            raise MissingThreadId()
        if not workspace_path:
            raise MissingWorkspace()

        async with self._thread_lock(thread_id):
            return await self._create_session_locked(thread_id, model_id, workspace_path)

    async def _create_session_locked(self, thread_id: str, model_id: str | None, workspace_path: str) -> AgentSession:
        logger.info("[Runtime] Creating session for thread %s", thread_id)
        logger.debug("[Runtime] Workspace path: %s", workspace_path)

        model = self.resolver.create_model(model_id)
        checkpointer = await self.checkpoints.acquire(thread_id)
        backend = self._get_backend(thread_id, workspace_path)
        external_tools = tuple(self.tool_pool.tools())
        if not external_tools:
            logger.debug("[Runtime] No external tools available")

        session = AgentSession(
            thread_id=thread_id,
            workspace_path=backend.working_dir,
            model=model,
            checkpointer=checkpointer,
            backend=backend,
            system_prompt=build_system_prompt(backend.working_dir),
            model_id=model_id,
            local_tools=tuple(build_workspace_tools(backend)),
            external_tools=external_tools,
            capabilities=(self._skills_middleware(),),
        )
        self._sessions[thread_id] = session
        return session

    async def close_session(self, thread_id: str) -> None:
        """Release the thread's checkpoint handle and sandbox. Safe to repeat."""
        async with self._thread_lock(thread_id):
            await self._close_session_locked(thread_id)

    async def _close_session_locked(self, thread_id: str) -> None:
        self._sessions.pop(thread_id, None)
        self._evict_backends(thread_id)
        await self.checkpoints.release(thread_id)

    async def close_all(self) -> None:
        thread_ids = {*self._sessions, *(k[0] for k in self._backends)}
        for thread_id in thread_ids:
            async with self._thread_lock(thread_id):
                self._sessions.pop(thread_id, None)
                self._evict_backends(thread_id)
        await self.checkpoints.release_all()
        logger.info("[Runtime] All sessions closed")

    async def delete_thread(self, thread_id: str) -> None:
        """Close the thread's session and remove its checkpoint store."""
        if not thread_id:
            raise MissingThreadId()
        async with self._thread_lock(thread_id):
            await self._close_session_locked(thread_id)
            await self.checkpoints.delete(thread_id)
            self._locks.pop(thread_id, None)

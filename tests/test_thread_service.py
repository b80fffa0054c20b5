"""Tests for thread-level session lookup."""

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage

from agent import AgentRuntime
from config.schema import MCPConfig, RuntimeSettings
from config.store import ConfigStore
from core.errors import MissingWorkspace
from core.mcp import ExternalToolPool
from services import thread_service, workspace_service
from storage.checkpointer import CheckpointerRegistry
from storage.providers.sqlite import SQLiteThreadRepo


class FakeResolver:
    def create_model(self, model_id=None):
        return GenericFakeChatModel(messages=iter([AIMessage(content="done")]))


@pytest.fixture
def repo(tmp_path):
    repo = SQLiteThreadRepo(tmp_path / "openwork.sqlite")
    repo.create_thread("t-1", {"title": "Chat"})
    yield repo
    repo.close()


@pytest.fixture
def runtime(tmp_path):
    return AgentRuntime(
        ConfigStore(tmp_path / "config.json"),
        resolver=FakeResolver(),
        checkpoints=CheckpointerRegistry(tmp_path / "threads"),
        tool_pool=ExternalToolPool(MCPConfig(enabled=False)),
        settings=RuntimeSettings(),
        skill_paths=[],
    )


def test_thread_model_round_trip(repo):
    assert thread_service.get_thread_model(repo, "t-1") is None
    thread_service.set_thread_model(repo, "t-1", "fast")
    assert thread_service.get_thread_model(repo, "t-1") == "fast"
    assert repo.get_metadata("t-1")["title"] == "Chat"


@pytest.mark.asyncio
async def test_session_requires_bound_folder(runtime, repo):
    with pytest.raises(MissingWorkspace):
        await thread_service.get_or_create_session(runtime, repo, "t-1")


@pytest.mark.asyncio
async def test_session_reused_until_binding_changes(runtime, repo, workspace, tmp_path):
    workspace_service.set_workspace_path(repo, "t-1", str(workspace))
    thread_service.set_thread_model(repo, "t-1", "fast")
    try:
        first = await thread_service.get_or_create_session(runtime, repo, "t-1")
        assert first.model_id == "fast"
        assert await thread_service.get_or_create_session(runtime, repo, "t-1") is first

        thread_service.set_thread_model(repo, "t-1", "smart")
        second = await thread_service.get_or_create_session(runtime, repo, "t-1")
        assert second is not first
        assert second.model_id == "smart"
        assert second.checkpointer is first.checkpointer

        other = tmp_path / "other"
        other.mkdir()
        workspace_service.set_workspace_path(repo, "t-1", str(other))
        third = await thread_service.get_or_create_session(runtime, repo, "t-1")
        assert third.workspace_path == str(other.resolve())
    finally:
        await runtime.close_all()


@pytest.mark.asyncio
async def test_delete_thread(runtime, repo, workspace):
    workspace_service.set_workspace_path(repo, "t-1", str(workspace))
    await thread_service.get_or_create_session(runtime, repo, "t-1")

    await thread_service.delete_thread(runtime, repo, "t-1")

    assert repo.get_metadata("t-1") is None
    assert not runtime.checkpoints.path_for("t-1").exists()

"""Tests for ExternalToolPool with a fake MCP client."""

import asyncio

import pytest
from langchain_core.tools import tool

from config.schema import MCPConfig, MCPServerConfig
from core.mcp import ExternalToolPool


def _make_tool(name: str):
    @tool(name)
    def _echo(query: str) -> str:
        """Echo the query back."""
        return query

    return _echo


class FakeMCPClient:
    """Stands in for MultiServerMCPClient; behaviour keyed by server name."""

    tools_by_server: dict = {}
    failing: set = set()
    hanging: set = set()
    instances: list = []

    def __init__(self, connections):
        self.connections = connections
        FakeMCPClient.instances.append(self)

    async def get_tools(self, *, server_name=None):
        if server_name in self.failing:
            raise ConnectionError(f"cannot reach {server_name}")
        if server_name in self.hanging:
            await asyncio.sleep(60)
        return [_make_tool(n) for n in self.tools_by_server.get(server_name, [])]


@pytest.fixture
def fake_client(monkeypatch):
    FakeMCPClient.tools_by_server = {}
    FakeMCPClient.failing = set()
    FakeMCPClient.hanging = set()
    FakeMCPClient.instances = []
    monkeypatch.setattr("core.mcp.pool.MultiServerMCPClient", FakeMCPClient)
    return FakeMCPClient


def _config(*names, **overrides):
    servers = {name: MCPServerConfig(url=f"https://{name}.example.com/mcp") for name in names}
    servers.update(overrides)
    return MCPConfig(servers=servers)


@pytest.mark.asyncio
async def test_unreachable_server_is_contained(fake_client):
    fake_client.tools_by_server = {"good": ["search", "fetch"]}
    fake_client.failing = {"bad"}
    pool = ExternalToolPool(_config("good", "bad"))

    tools = await pool.connect_all()

    assert sorted(t.name for t in tools) == ["mcp__good__fetch", "mcp__good__search"]
    assert [t.name for t in pool.tools()] == [t.name for t in tools]
    assert set(pool.failures) == {"bad"}
    assert "cannot reach bad" in pool.failures["bad"]


@pytest.mark.asyncio
async def test_slow_server_times_out(fake_client):
    fake_client.tools_by_server = {"good": ["search"]}
    fake_client.hanging = {"slow"}
    pool = ExternalToolPool(_config("good", "slow"), connect_timeout=0.1)

    tools = await pool.connect_all()

    assert [t.name for t in tools] == ["mcp__good__search"]
    assert "slow" in pool.failures


@pytest.mark.asyncio
async def test_connections_passed_to_client(fake_client):
    pool = ExternalToolPool(_config("good"))
    await pool.connect_all()
    assert fake_client.instances[0].connections == {
        "good": {"transport": "streamable_http", "url": "https://good.example.com/mcp"}
    }


@pytest.mark.asyncio
async def test_disabled_pool_is_empty(fake_client):
    pool = ExternalToolPool(MCPConfig(enabled=False))
    assert await pool.connect_all() == []
    assert pool.tools() == []
    assert fake_client.instances == []


@pytest.mark.asyncio
async def test_allowed_tools_filter(fake_client):
    fake_client.tools_by_server = {"good": ["search", "fetch"]}
    pool = ExternalToolPool(
        _config(good=MCPServerConfig(url="https://good.example.com/mcp", allowed_tools=["fetch"]))
    )
    tools = await pool.connect_all()
    assert [t.name for t in tools] == ["mcp__good__fetch"]


@pytest.mark.asyncio
async def test_tools_returns_a_copy(fake_client):
    fake_client.tools_by_server = {"good": ["search"]}
    pool = ExternalToolPool(_config("good"))
    await pool.connect_all()

    snapshot = pool.tools()
    snapshot.clear()
    assert len(pool.tools()) == 1


def test_tools_empty_before_connect():
    assert ExternalToolPool(_config("good")).tools() == []


@pytest.mark.asyncio
async def test_start_runs_in_background(fake_client):
    fake_client.tools_by_server = {"good": ["search"]}
    pool = ExternalToolPool(_config("good"))

    task = pool.start()
    assert pool.start() is task
    await task

    assert [t.name for t in pool.tools()] == ["mcp__good__search"]
    await pool.disconnect_all()
    assert pool.tools() == []


@pytest.mark.asyncio
async def test_disconnect_cancels_pending_connect(fake_client):
    fake_client.hanging = {"slow"}
    pool = ExternalToolPool(_config("slow"), connect_timeout=60, disconnect_timeout=1)

    task = pool.start()
    await asyncio.sleep(0.05)
    assert pool.connecting

    await asyncio.wait_for(pool.disconnect_all(), timeout=5)

    assert task.cancelled()
    assert not pool.connecting
    assert pool.tools() == []


@pytest.mark.asyncio
async def test_disconnect_without_connect(fake_client):
    pool = ExternalToolPool(_config("good"))
    await pool.disconnect_all()
    assert pool.tools() == []

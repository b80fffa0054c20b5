"""Process-wide pool of tools served by external MCP servers.

Servers are contacted independently: one server failing to connect is
logged and recorded in `failures`, the rest still contribute tools.
"""

from __future__ import annotations

import asyncio
import logging

from langchain_core.tools import BaseTool
from langchain_mcp_adapters.client import MultiServerMCPClient

from config.schema import MCPConfig, MCPServerConfig

logger = logging.getLogger(__name__)


class ExternalToolPool:
    def __init__(
        self,
        mcp_config: MCPConfig | None = None,
        *,
        connect_timeout: float = 30.0,
        disconnect_timeout: float = 5.0,
    ) -> None:
        self.config = mcp_config or MCPConfig()
        self.connect_timeout = connect_timeout
        self.disconnect_timeout = disconnect_timeout
        self.failures: dict[str, str] = {}
        self._tools: tuple[BaseTool, ...] = ()
        self._client: MultiServerMCPClient | None = None
        self._connect_task: asyncio.Task | None = None

    @property
    def connecting(self) -> bool:
        return self._connect_task is not None and not self._connect_task.done()

    def tools(self) -> list[BaseTool]:
        """Snapshot of the currently loaded tools. Empty until a connect finishes."""
        return list(self._tools)

    def start(self) -> asyncio.Task:
        """Schedule connect_all() in the background; reuses an in-flight attempt."""
        if not self.connecting:
            self._connect_task = asyncio.create_task(self.connect_all(), name="mcp-connect-all")
        return self._connect_task

    async def connect_all(self) -> list[BaseTool]:
        servers = self.config.servers
        if not self.config.enabled or not servers:
            logger.info("[MCP] No external tool servers configured")
            self._tools = ()
            return []

        connections = {name: cfg.to_connection() for name, cfg in servers.items()}
        client = MultiServerMCPClient(connections)
        self._client = client

        batches = await asyncio.gather(*(self._load_server(client, name, cfg) for name, cfg in servers.items()))
        tools = [tool for batch in batches for tool in batch]
        self._tools = tuple(tools)
        logger.info(
            "[MCP] Loaded %d tools from %d/%d servers",
            len(tools),
            len(servers) - len(self.failures),
            len(servers),
        )
        return list(tools)

    async def _load_server(self, client: MultiServerMCPClient, name: str, cfg: MCPServerConfig) -> list[BaseTool]:
        try:
            tools = await asyncio.wait_for(client.get_tools(server_name=name), timeout=self.connect_timeout)
        except Exception as e:
            reason = str(e) or type(e).__name__
            self.failures[name] = reason
            logger.warning("[MCP] Server %s unavailable: %s", name, reason)
            return []

        self.failures.pop(name, None)
        if cfg.allowed_tools:
            tools = [t for t in tools if t.name in cfg.allowed_tools]
        # Apply mcp__ prefix so tools from different servers never collide
        for tool in tools:
            tool.name = f"mcp__{name}__{tool.name}"
        logger.debug("[MCP] Server %s: %s", name, [t.name for t in tools])
        return tools

    async def disconnect_all(self) -> None:
        """Best-effort teardown, bounded by disconnect_timeout."""
        task, self._connect_task = self._connect_task, None
        if task is not None and not task.done():
            task.cancel()
            _, pending = await asyncio.wait({task}, timeout=self.disconnect_timeout)
            if pending:
                logger.warning("[MCP] Connect still pending after %ss, abandoning it", self.disconnect_timeout)
        self._client = None
        self._tools = ()
        logger.info("[MCP] Disconnected")

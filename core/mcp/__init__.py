"""External tool pool backed by MCP servers."""

from core.mcp.pool import ExternalToolPool

__all__ = ["ExternalToolPool"]

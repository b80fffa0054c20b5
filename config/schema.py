"""Configuration schema for openwork using Pydantic.

Defines the structure of ~/.openwork/config.json:
- Credential/endpoint (apiKey, baseUrl), global for the installation
- User model records (at most one flagged default)
- MCP server descriptors for the external tool pool
- Runtime limits for the execution backend

Keys are camelCase on disk; Python attributes are snake_case.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================================
# Models
# ============================================================================


class UserModel(_CamelModel):
    """A user-registered model: display name → provider-side identifier."""

    id: str
    name: str
    model_id: str = Field(..., alias="modelId", description="Provider-side model identifier")
    description: str | None = None
    is_default: bool | None = Field(None, alias="isDefault")


# ============================================================================
# MCP Configuration
# ============================================================================


class MCPServerConfig(_CamelModel):
    """Configuration for a single MCP server (remote URL or local command)."""

    url: str | None = None
    transport: Literal["streamable_http", "sse", "stdio"] | None = None
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    allowed_tools: list[str] | None = Field(None, alias="allowedTools", description="Expose only these tools")

    @model_validator(mode="after")
    def _require_endpoint(self) -> MCPServerConfig:
        if not self.url and not self.command:
            raise ValueError("MCP server needs either url or command")
        return self

    def to_connection(self) -> dict[str, Any]:
        """Build the connection dict understood by MultiServerMCPClient."""
        if self.url:
            connection: dict[str, Any] = {"transport": self.transport or "streamable_http", "url": self.url}
            if self.headers:
                connection["headers"] = self.headers
            return connection
        connection = {"transport": "stdio", "command": self.command, "args": self.args}
        if self.env:
            connection["env"] = self.env
        return connection


DEFAULT_MCP_SERVERS: dict[str, MCPServerConfig] = {
    "exa": MCPServerConfig(url="https://mcp.exa.ai/mcp", transport="streamable_http"),
}


class MCPConfig(_CamelModel):
    """MCP (Model Context Protocol) configuration."""

    enabled: bool = True
    servers: dict[str, MCPServerConfig] = Field(default_factory=lambda: dict(DEFAULT_MCP_SERVERS))


# ============================================================================
# Runtime Configuration
# ============================================================================


class RuntimeSettings(_CamelModel):
    """Limits applied to every agent session."""

    command_timeout: float = Field(120.0, alias="commandTimeout", gt=0, description="Seconds per shell command")
    max_output_bytes: int = Field(100_000, alias="maxOutputBytes", gt=0, description="Captured output cap")
    mcp_connect_timeout: float = Field(30.0, alias="mcpConnectTimeout", gt=0)
    mcp_disconnect_timeout: float = Field(5.0, alias="mcpDisconnectTimeout", gt=0)
    skills_dir: str | None = Field(None, alias="skillsDir", description="Directory scanned for SKILL.md files")


# ============================================================================
# Main Config
# ============================================================================


class OpenworkConfig(_CamelModel):
    """Whole config.json document.

    api_key keeps the difference between "absent" (None) and "empty" ("").
    """

    api_key: str | None = Field(None, alias="apiKey")
    base_url: str | None = Field(None, alias="baseUrl")
    models: list[UserModel] = Field(default_factory=list)
    default_model: str | None = Field(None, alias="defaultModel")
    mcp: MCPConfig = Field(default_factory=MCPConfig)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)

    @field_validator("models", mode="wrap")
    @classmethod
    def _drop_invalid_models(cls, value: Any, handler: Any) -> list[UserModel]:
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning("[Config] Ignoring invalid models list: %s", e)
            return []

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

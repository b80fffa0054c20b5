"""Configuration management for openwork."""

from .resolver import ModelResolver
from .schema import MCPConfig, MCPServerConfig, OpenworkConfig, RuntimeSettings, UserModel
from .store import ConfigStore

__all__ = [
    "ConfigStore",
    "MCPConfig",
    "MCPServerConfig",
    "ModelResolver",
    "OpenworkConfig",
    "RuntimeSettings",
    "UserModel",
]

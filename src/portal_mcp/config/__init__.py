"""Configuration management for the Portal MCP server."""

from .config_manager import ConfigManager

__all__ = [
    "ConfigManager",
]

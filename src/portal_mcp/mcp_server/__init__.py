"""MCP server for the Portal MCP tools.

Exposes the tool catalog over stdio (default) or streamable HTTP.
"""

from .server import PythonMcpServer, ServerConfig
from .tool_providers import ToolProviderManager

__all__ = [
    "PythonMcpServer",
    "ServerConfig",
    "ToolProviderManager",
]

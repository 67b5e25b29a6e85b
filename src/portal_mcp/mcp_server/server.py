"""Python MCP Server implementation.

Wraps the low-level ``mcp.server.Server`` around the tool providers and runs
it over stdio (the default) or streamable HTTP behind a FastAPI app.
"""

from __future__ import annotations

import contextlib
import logging

from typing import Any, AsyncIterator, Literal

from fastapi import FastAPI
from mcp import types
from mcp.server import Server, Server as MCPServer
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from pydantic import BaseModel

from portal_mcp import __version__
from portal_mcp.context import EnvironmentContext
from portal_mcp.mcp_server.tool_providers import ToolProviderManager
from portal_mcp.mcp_utils.debug_logger import DebugLogger

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    """Configuration for the MCP server."""

    name: str = "portal-mcp"
    version: str = __version__
    host: str = "127.0.0.1"
    port: int = 8080
    transport: Literal["stdio", "streamable-http"] = "stdio"


class PythonMcpServer:
    """MCP server exposing the Godot / Portal SDK tool catalog."""

    def __init__(
        self,
        config: ServerConfig | None = None,
        ctx: EnvironmentContext | None = None,
    ) -> None:
        self.config: ServerConfig = ServerConfig() if config is None else config
        self.ctx: EnvironmentContext = EnvironmentContext.create() if ctx is None else ctx

        self.tool_providers: ToolProviderManager = ToolProviderManager(self.ctx)
        self.tool_providers.register_all_providers()
        self.mcp_server: MCPServer = self._create_mcp_server()

        self._running: bool = False
        self._cleaned_up: bool = False
        self._session_manager = StreamableHTTPSessionManager(
            app=self.mcp_server,
            json_response=True,
            stateless=False,
        )
        self.app: FastAPI = self._create_app()

    def _create_mcp_server(self) -> MCPServer:
        server = Server(name=self.config.name, version=self.config.version)

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return self.tool_providers.list_tools()

        @server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            """Call a tool by name with arguments.

            Input validation is disabled because snake_case and camelCase
            parameter names are both accepted and normalized before dispatch.
            """
            return await self.tool_providers.call_tool(name, arguments)

        return server

    def _create_app(self) -> FastAPI:
        @contextlib.asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            async with self._session_manager.run():
                self._running = True
                try:
                    yield
                finally:
                    self._running = False
                    await self.cleanup()

        app = FastAPI(title=self.config.name, version=self.config.version, lifespan=lifespan)
        app.mount("/mcp/message", self._session_manager.handle_request)

        @app.get("/health")
        async def health_check() -> dict[str, Any]:
            return {
                "status": "healthy" if self._running else "starting",
                "server": self.config.name,
                "version": self.config.version,
                "godotProcess": self.ctx.supervisor.state.value,
            }

        return app

    async def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        from mcp.server.stdio import stdio_server

        DebugLogger.debug_tool_execution(self, "server_startup", "START", "stdio transport")
        self._running = True
        try:
            async with stdio_server() as (read_stream, write_stream):
                logger.info(f"{self.config.name} {self.config.version} running on stdio")
                await self.mcp_server.run(read_stream, write_stream, self.mcp_server.create_initialization_options())
        finally:
            self._running = False
            await self.cleanup()

    async def serve_http(self) -> None:
        """Serve MCP over streamable HTTP at ``/mcp/message`` until interrupted."""
        import uvicorn

        DebugLogger.debug_tool_execution(self, "server_startup", "START", f"{self.config.host}:{self.config.port}")
        uvicorn_config = uvicorn.Config(app=self.app, host=self.config.host, port=self.config.port, log_level="info")
        logger.info(f"MCP server starting on http://{self.config.host}:{self.config.port}/mcp/message")
        await uvicorn.Server(uvicorn_config).serve()

    async def run(self) -> None:
        if self.config.transport == "streamable-http":
            await self.serve_http()
        else:
            await self.run_stdio()

    async def cleanup(self) -> None:
        """Stop the supervised Godot process and release provider resources.  Idempotent."""
        if self._cleaned_up:
            return
        self._cleaned_up = True
        logger.info("Stopping MCP server...")
        await self.tool_providers.cleanup()
        logger.info("MCP server stopped")

    def is_running(self) -> bool:
        return self._running

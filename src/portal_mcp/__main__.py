#!/usr/bin/env python3
"""Portal MCP - Main entry point.

Serves the Godot / Battlefield Portal SDK tools over MCP.
Usage: claude mcp add portal -- mcp-portal [--config PATH] [--godot-path PATH] [--verbose]

Streamable HTTP instead of stdio: --transport streamable-http [--host HOST] [--port PORT].
Paths can also come from GODOT_PATH, PORTAL_SDK_PATH, PORTAL_PROJECT_PATH,
PORTAL_FB_EXPORT_PATH and PYTHON_PATH.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from pathlib import Path

from portal_mcp import __version__
from portal_mcp.config.config_manager import ConfigManager
from portal_mcp.context import EnvironmentContext
from portal_mcp.errors import ToolNotFoundError
from portal_mcp.executor import handle_command_error, run_async
from portal_mcp.mcp_server.server import PythonMcpServer, ServerConfig

logger = logging.getLogger(__name__)


class PortalMcpCLI:
    """Main CLI application."""

    def __init__(self, server: PythonMcpServer, godot_override: str | None = None):
        self.server: PythonMcpServer = server
        self.godot_override: str | None = godot_override

    def setup_signal_handlers(self, task: asyncio.Task) -> None:
        """Cancel the serving task on SIGTERM/SIGHUP so shutdown runs the normal cleanup path."""
        loop = asyncio.get_running_loop()
        for name in ("SIGTERM", "SIGHUP"):
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            try:
                loop.add_signal_handler(sig, self._on_signal, sig, task)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler; Ctrl+C still works.
                logger.debug(f"Signal handler for {name} not installed")

    @staticmethod
    def _on_signal(sig: int, task: asyncio.Task) -> None:
        sys.stderr.write(f"\nReceived signal {sig}, shutting down gracefully...\n")
        task.cancel()

    async def _resolve_godot(self) -> None:
        resolver = self.server.ctx.resolver
        if self.godot_override and not await resolver.set_godot_path(self.godot_override):
            if self.server.ctx.config.is_strict_path_validation():
                raise ToolNotFoundError(f"Invalid Godot path: {self.godot_override}")
            logger.warning(f"Ignoring invalid --godot-path {self.godot_override}")
        godot_path = await resolver.resolve_godot()
        logger.info(f"Godot executable: {godot_path}")

    async def run(self) -> None:
        task = asyncio.current_task()
        if task is not None:
            self.setup_signal_handlers(task)
        try:
            await self._resolve_godot()
            await self.server.run()
        except asyncio.CancelledError:
            sys.stderr.write("Shutdown complete\n")
        finally:
            await self.server.cleanup()


def _build_config(args: argparse.Namespace) -> ConfigManager:
    config = ConfigManager(config_file=args.config)
    if args.sdk_path:
        config.set_sdk_path(args.sdk_path)
    if args.project_path:
        config.set_project_path(args.project_path)
    if args.strict:
        config.set_strict_path_validation(True)
    if args.host:
        config.set_server_host(args.host)
    if args.port:
        config.set_server_port(args.port)
    if args.verbose:
        config.set_debug_mode(True)
    return config


def main():
    """Main entry point for the mcp-portal command."""
    parser = argparse.ArgumentParser(
        description="MCP server for Godot and the Battlefield Portal SDK",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Path to a JSON configuration file", required=False)
    parser.add_argument("--godot-path", type=str, default=None, help="Godot executable (overrides GODOT_PATH)")
    parser.add_argument("--sdk-path", type=str, default=None, help="Portal SDK root (overrides PORTAL_SDK_PATH)")
    parser.add_argument("--project-path", type=str, default=None, help="Default Godot project directory")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Exit if no valid Godot executable can be found instead of using a default path",
    )
    parser.add_argument(
        "-t",
        "--transport",
        choices=["stdio", "streamable-http"],
        default="stdio",
        help="MCP transport",
    )
    parser.add_argument("--host", type=str, default=None, metavar="HOST", help="HTTP host (default: 127.0.0.1 or PORTAL_MCP_HOST)")
    parser.add_argument("--port", type=int, default=None, metavar="PORT", help="HTTP port (default: 8080 or PORTAL_MCP_PORT)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging", default=False)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    # stdout carries the MCP stream; all logging goes to stderr.
    logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(asctime)s [%(levelname)s] %(message)s")

    if args.config and not args.config.exists():
        sys.stderr.write(f"Error: Configuration file not found: {args.config}\n")
        sys.exit(1)

    try:
        config = _build_config(args)
    except ValueError as e:
        sys.stderr.write(f"Error: {e}\n")
        sys.exit(1)

    server_config = ServerConfig(
        host=config.get_server_host(),
        port=config.get_server_port(),
        transport=args.transport,
    )
    server = PythonMcpServer(server_config, EnvironmentContext.create(config))
    cli = PortalMcpCLI(server, godot_override=args.godot_path or config.get_godot_path())

    try:
        run_async(cli.run())
    except KeyboardInterrupt:
        sys.stderr.write("\nShutdown complete\n")
        sys.exit(0)
    except Exception as e:
        handle_command_error(e)
        sys.exit(1)


if __name__ == "__main__":
    main()

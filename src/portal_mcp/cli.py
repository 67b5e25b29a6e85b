"""Command-line client for the Portal MCP tools.

Runs the same tool providers as the server, in-process, without an MCP
transport.  Useful for checking what the server would resolve and for
scripting single operations.

Usage:
  portal-mcp-cli paths
  portal-mcp-cli tools
  portal-mcp-cli call list-projects '{"directory": "~/godot", "recursive": true}'
  portal-mcp-cli --sdk-path ~/PortalSDK call list-sdk-levels
"""

from __future__ import annotations

import asyncio
import json
import sys

from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import click

from portal_mcp import __version__
from portal_mcp.config.config_manager import ConfigManager
from portal_mcp.context import EnvironmentContext
from portal_mcp.executor import handle_command_error, run_async
from portal_mcp.mcp_server.tool_providers import ToolProviderManager
from portal_mcp.registry import resolve_tool_name


def _get_opts(ctx: click.Context) -> dict[str, Any]:
    """Global options from context (set by main group)."""
    return ctx.obj or {}


def _build_context(ctx: click.Context) -> EnvironmentContext:
    opts = _get_opts(ctx)
    config = ConfigManager(config_file=opts.get("config"))
    if opts.get("godot_path"):
        config.set_godot_path(opts["godot_path"])
    if opts.get("sdk_path"):
        config.set_sdk_path(opts["sdk_path"])
    if opts.get("project_path"):
        config.set_project_path(opts["project_path"])
    if opts.get("verbose"):
        config.set_debug_mode(True)
    return EnvironmentContext.create(config)


def _parse_tool_payload(arguments: str) -> dict[str, Any]:
    """Parse CLI JSON argument payload for the call command."""
    # PowerShell may pass the surrounding quotes through.
    arguments = arguments.strip()
    if arguments and arguments[0] in ('"', "'") and arguments[-1] == arguments[0]:
        arguments = arguments[1:-1]

    try:
        payload = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON arguments: {e}", err=True)
        sys.exit(1)

    if not isinstance(payload, dict):
        click.echo("Arguments must be a JSON object.", err=True)
        sys.exit(1)
    return payload


def _run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        return run_async(coro)
    except (asyncio.CancelledError, Exception) as e:
        handle_command_error(e)
        sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", type=click.Path(path_type=Path), help="Path to a JSON configuration file")
@click.option("--godot-path", help="Godot executable to use")
@click.option("--sdk-path", help="Battlefield Portal SDK root")
@click.option("--project-path", help="Default Godot project directory")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.version_option(__version__, "--version", "-V")
@click.pass_context
def main(
    ctx: click.Context,
    config: Path | None,
    godot_path: str | None,
    sdk_path: str | None,
    project_path: str | None,
    verbose: bool,
) -> None:
    """Portal MCP CLI - run the Godot / Portal SDK tools without an MCP client."""
    ctx.obj = {
        "config": config,
        "godot_path": godot_path,
        "sdk_path": sdk_path,
        "project_path": project_path,
        "verbose": verbose,
    }


@main.command("paths")
@click.pass_context
def paths_command(ctx: click.Context) -> None:
    """Show the SDK, project and FbExportData paths the server would use."""
    env = _build_context(ctx)
    env.resolver.resolve_sdk_root()
    click.echo(json.dumps(env.paths.as_dict(), indent=2))


@main.command("tools")
@click.option("--json", "as_json", is_flag=True, help="Print full tool definitions as JSON")
@click.pass_context
def tools_command(ctx: click.Context, as_json: bool) -> None:
    """List the available tools."""
    manager = ToolProviderManager(_build_context(ctx))
    manager.register_all_providers()
    tools = manager.list_tools()
    if as_json:
        click.echo(json.dumps([tool.model_dump(exclude_none=True) for tool in tools], indent=2))
        return
    for tool in tools:
        click.echo(f"{tool.name:<24} {tool.description}")


@main.command("call")
@click.argument("tool")
@click.argument("arguments", required=False, default="")
@click.pass_context
def call_command(ctx: click.Context, tool: str, arguments: str) -> None:
    """Call TOOL with a JSON object of ARGUMENTS (snake_case or camelCase keys)."""
    payload = _parse_tool_payload(arguments)
    if resolve_tool_name(tool) is None:
        click.echo(f"Unknown tool: {tool}. Use 'portal-mcp-cli tools' to list them.", err=True)
        sys.exit(1)

    manager = ToolProviderManager(_build_context(ctx))
    manager.register_all_providers()

    async def _run():
        try:
            return await manager.call_tool(tool, payload)
        finally:
            await manager.cleanup()

    result = _run_async(_run())
    text = "\n\n".join(block.text for block in result.content if getattr(block, "text", None))
    if result.isError:
        click.echo(text, err=True)
        sys.exit(1)
    click.echo(text)


if __name__ == "__main__":
    main()

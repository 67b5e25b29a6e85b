"""Editor Tool Provider - launch-editor, run-project, get-debug-output, stop-project, get-tool-version.

Starts Godot in its various modes.  Only run-project's child is supervised;
the editor is launched detached and forgotten.
"""

from __future__ import annotations

import logging

from typing import Any

from mcp import types

from portal_mcp.executor import launch_detached
from portal_mcp.mcp_server.tool_providers import (
    ToolProvider,
    create_success_response,
)
from portal_mcp.mcp_utils.schema_util import SchemaBuilder, empty_schema
from portal_mcp.models import StopResult

logger = logging.getLogger(__name__)

_PROJECT_PATH_HELP = "Path to the Godot project directory (defaults to the Portal SDK project)"


class EditorToolProvider(ToolProvider):
    HANDLERS = {
        "launcheditor": "_handle_launch_editor",
        "runproject": "_handle_run_project",
        "getdebugoutput": "_handle_get_debug_output",
        "stopproject": "_handle_stop_project",
        "gettoolversion": "_handle_get_tool_version",
    }

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="launch-editor",
                description="Launch the Godot editor for a project",
                inputSchema=SchemaBuilder().string_property("projectPath", _PROJECT_PATH_HELP).build(),
            ),
            types.Tool(
                name="run-project",
                description="Run a Godot project in debug mode and capture its output",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scene", "Optional scene to run instead of the main scene")
                    .build()
                ),
            ),
            types.Tool(
                name="get-debug-output",
                description="Get the output and errors captured from the running Godot project",
                inputSchema=empty_schema(),
            ),
            types.Tool(
                name="stop-project",
                description="Stop the running Godot project",
                inputSchema=empty_schema(),
            ),
            types.Tool(
                name="get-tool-version",
                description="Get the installed Godot version",
                inputSchema=empty_schema(),
            ),
        ]

    async def _handle_launch_editor(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        godot = await self.ctx.resolver.resolve_godot()
        logger.info(f"Launching Godot editor for project: {project}")
        launch_detached([godot, "-e", "--path", project])
        return create_success_response(f"Godot editor launched successfully for project at {project}.")

    async def _handle_run_project(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        godot = await self.ctx.resolver.resolve_godot()
        scene = self._get_str(args, "scene") or None
        await self.ctx.supervisor.start(godot, project, scene)
        return create_success_response(
            f"Godot project started in debug mode from {project}. Use get-debug-output to see output.",
        )

    async def _handle_get_debug_output(self, args: dict[str, Any]) -> types.CallToolResult:
        return create_success_response(self.ctx.supervisor.poll().model_dump())

    async def _handle_stop_project(self, args: dict[str, Any]) -> types.CallToolResult:
        final = await self.ctx.supervisor.stop()
        result = StopResult(message="Godot project stopped", final_output=final.output, final_errors=final.errors)
        return create_success_response(result.model_dump(by_alias=True))

    async def _handle_get_tool_version(self, args: dict[str, Any]) -> types.CallToolResult:
        return create_success_response(await self.ctx.resolver.get_godot_version())

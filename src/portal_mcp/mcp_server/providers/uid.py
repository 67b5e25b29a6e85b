"""UID Tool Provider - get-resource-id, update-resource-ids.

Resource UIDs only exist from Godot 4.4 on; both tools refuse older engines.
"""

from __future__ import annotations

import os

from typing import Any

from mcp import types

from portal_mcp.errors import ExternalScriptError, InvalidPathError
from portal_mcp.mcp_server.tool_providers import (
    ToolProvider,
    create_success_response,
)
from portal_mcp.mcp_utils.schema_util import SchemaBuilder
from portal_mcp.paths import to_absolute_path

MINIMUM_UID_VERSION = (4, 4)


class UidToolProvider(ToolProvider):
    HANDLERS = {
        "getresourceid": "_handle_get_resource_id",
        "updateresourceids": "_handle_update_resource_ids",
    }

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="get-resource-id",
                description="Get the UID of a resource file (Godot 4.4+)",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", "Path to the Godot project directory")
                    .string_property("filePath", "Resource file path relative to the project")
                    .required("filePath")
                    .build()
                ),
            ),
            types.Tool(
                name="update-resource-ids",
                description="Resave all project resources so every resource has an up-to-date UID (Godot 4.4+)",
                inputSchema=SchemaBuilder().string_property("projectPath", "Path to the Godot project directory").build(),
            ),
        ]

    async def _handle_get_resource_id(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        file_path = self._get_str(args, "filePath")
        if not os.path.exists(to_absolute_path(project, file_path)):
            raise InvalidPathError(f"File does not exist: {file_path}", ["Ensure the file path is correct"])

        await self.ctx.resolver.require_version(MINIMUM_UID_VERSION, "Resource UIDs")

        result = await self.ctx.executor.run_tool_script("get_uid", {"filePath": file_path}, project)
        if result.failed:
            raise ExternalScriptError(
                f"Failed to get UID: {result.stderr.strip()}",
                ["Check if the file is a valid Godot resource", "Ensure the file path is correct"],
            )
        return create_success_response(f"UID for {file_path}: {result.stdout.strip()}")

    async def _handle_update_resource_ids(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        await self.ctx.resolver.require_version(MINIMUM_UID_VERSION, "Resource UIDs")
        return await self._run_operation(
            "resave_resources",
            {"projectPath": project},
            project,
            success_text="Project UIDs updated successfully.",
            failure_text="Failed to update project UIDs",
            suggestions=["Check if the project is valid", "Ensure you have write permissions to the project directory"],
        )

"""Project Tool Provider - list-projects, get-project-info."""

from __future__ import annotations

import logging
import os

from typing import Any

from mcp import types

from portal_mcp.errors import InvalidPathError
from portal_mcp.mcp_server.tool_providers import (
    ToolProvider,
    create_success_response,
)
from portal_mcp.mcp_utils.schema_util import SchemaBuilder
from portal_mcp.models import ProjectInfo
from portal_mcp.project_scan import find_projects, read_project_name, scan_project_structure

logger = logging.getLogger(__name__)


class ProjectToolProvider(ToolProvider):
    HANDLERS = {
        "listprojects": "_handle_list_projects",
        "getprojectinfo": "_handle_get_project_info",
    }

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="list-projects",
                description="List Godot projects in a directory",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("directory", "Directory to search for Godot projects")
                    .boolean_property("recursive", "Search subdirectories recursively", default=False)
                    .required("directory")
                    .build()
                ),
            ),
            types.Tool(
                name="get-project-info",
                description="Get metadata about a Godot project",
                inputSchema=SchemaBuilder().string_property("projectPath", "Path to the Godot project directory").build(),
            ),
        ]

    async def _handle_list_projects(self, args: dict[str, Any]) -> types.CallToolResult:
        directory = self._get_str(args, "directory")
        if not os.path.isdir(directory):
            raise InvalidPathError(
                f"Directory does not exist: {directory}",
                ["Provide a valid directory path that exists on the system"],
            )
        recursive = self._get_bool(args, "recursive")
        logger.debug(f"Listing Godot projects in {directory} (recursive={recursive})")
        projects = find_projects(directory, recursive)
        return create_success_response([p.model_dump() for p in projects])

    async def _handle_get_project_info(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        version = await self.ctx.resolver.get_godot_version()
        info = ProjectInfo(
            name=read_project_name(project),
            path=project,
            godot_version=version,
            structure=scan_project_structure(project),
        )
        return create_success_response(info.model_dump(by_alias=True, exclude_none=True))

"""Scene Tool Provider - create-scene, add-node, load-sprite, export-mesh-library, save-scene.

All of these run one operation of the bundled GDScript in a headless Godot.
The handlers only check that referenced files exist; the scene editing
itself happens inside Godot.
"""

from __future__ import annotations

import os

from typing import Any

from mcp import types

from portal_mcp.errors import InvalidPathError
from portal_mcp.mcp_server.tool_providers import ToolProvider
from portal_mcp.mcp_utils.schema_util import SchemaBuilder
from portal_mcp.paths import to_absolute_path

_PROJECT_PATH_HELP = "Path to the Godot project directory (defaults to the Portal SDK project)"
_SCENE_PATH_HELP = "Scene file path relative to the project (res:// accepted)"

_MISSING_SCENE_HINTS = ["Ensure the scene path is correct", "Use create-scene to create a new scene first"]


class SceneToolProvider(ToolProvider):
    HANDLERS = {
        "createscene": "_handle_create_scene",
        "addnode": "_handle_add_node",
        "loadsprite": "_handle_load_sprite",
        "exportmeshlibrary": "_handle_export_mesh_library",
        "savescene": "_handle_save_scene",
    }

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="create-scene",
                description="Create a new Godot scene file",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scenePath", "Path where the scene file will be saved, relative to the project")
                    .string_property("rootNodeType", "Type of the root node", default="Node2D")
                    .required("scenePath")
                    .build()
                ),
            ),
            types.Tool(
                name="add-node",
                description="Add a node to an existing scene",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scenePath", _SCENE_PATH_HELP)
                    .string_property("parentNodePath", "Path to the parent node", default="root")
                    .string_property("nodeType", "Type of node to add (e.g. Sprite2D, CollisionShape2D)")
                    .string_property("nodeName", "Name for the new node")
                    .object_property("properties", "Optional property values to set on the new node")
                    .required("scenePath", "nodeType", "nodeName")
                    .build()
                ),
            ),
            types.Tool(
                name="load-sprite",
                description="Load a texture into a Sprite2D, Sprite3D or TextureRect node",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scenePath", _SCENE_PATH_HELP)
                    .string_property("nodePath", "Path to the sprite node (e.g. root/Player/Sprite2D)")
                    .string_property("texturePath", "Texture file path relative to the project")
                    .required("scenePath", "nodePath", "texturePath")
                    .build()
                ),
            ),
            types.Tool(
                name="export-mesh-library",
                description="Export a scene as a MeshLibrary resource",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scenePath", "Scene (.tscn) containing the meshes")
                    .string_property("outputPath", "Where to save the MeshLibrary (.res)")
                    .array_property("meshItemNames", "Optional names of the mesh items to include", items={"type": "string"})
                    .required("scenePath", "outputPath")
                    .build()
                ),
            ),
            types.Tool(
                name="save-scene",
                description="Save a scene, optionally under a new path",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("projectPath", _PROJECT_PATH_HELP)
                    .string_property("scenePath", _SCENE_PATH_HELP)
                    .string_property("newPath", "Optional new path for a copy of the scene")
                    .required("scenePath")
                    .build()
                ),
            ),
        ]

    def _require_file(self, project: str, relative: str, what: str, suggestions: list[str]) -> None:
        if not os.path.exists(to_absolute_path(project, relative)):
            raise InvalidPathError(f"{what} does not exist: {relative}", suggestions)

    async def _handle_create_scene(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        scene_path = self._get_str(args, "scenePath")
        params = {
            "scenePath": scene_path,
            "rootNodeType": self._get_str(args, "rootNodeType", default="Node2D"),
        }
        return await self._run_operation(
            "create_scene",
            params,
            project,
            success_text=f"Scene created successfully at: {scene_path}",
            failure_text="Failed to create scene",
            suggestions=[
                "Check if the root node type is valid",
                "Ensure you have write permissions to the scene path",
                "Verify the scene path is valid",
            ],
        )

    async def _handle_add_node(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        scene_path = self._get_str(args, "scenePath")
        self._require_file(project, scene_path, "Scene file", _MISSING_SCENE_HINTS)

        node_type = self._get_str(args, "nodeType")
        node_name = self._get_str(args, "nodeName")
        params: dict[str, Any] = {"scenePath": scene_path, "nodeType": node_type, "nodeName": node_name}
        parent = self._get_str(args, "parentNodePath")
        if parent:
            params["parentNodePath"] = parent
        properties = self._get(args, "properties")
        if properties:
            params["properties"] = properties

        return await self._run_operation(
            "add_node",
            params,
            project,
            success_text=f"Node '{node_name}' of type '{node_type}' added successfully to '{scene_path}'.",
            failure_text="Failed to add node",
            suggestions=[
                "Check if the node type is valid",
                "Ensure the parent node path exists",
                "Verify the scene file is valid",
            ],
        )

    async def _handle_load_sprite(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        scene_path = self._get_str(args, "scenePath")
        texture_path = self._get_str(args, "texturePath")
        self._require_file(project, scene_path, "Scene file", _MISSING_SCENE_HINTS)
        self._require_file(
            project,
            texture_path,
            "Texture file",
            ["Ensure the texture path is correct", "Upload or create the texture file first"],
        )

        params = {"scenePath": scene_path, "nodePath": self._get_str(args, "nodePath"), "texturePath": texture_path}
        return await self._run_operation(
            "load_sprite",
            params,
            project,
            success_text=f"Sprite loaded successfully with texture: {texture_path}",
            failure_text="Failed to load sprite",
            suggestions=[
                "Check if the node path is correct",
                "Ensure the node is a Sprite2D, Sprite3D, or TextureRect",
                "Verify the texture file is a valid image format",
            ],
        )

    async def _handle_export_mesh_library(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        scene_path = self._get_str(args, "scenePath")
        output_path = self._get_str(args, "outputPath")
        self._require_file(project, scene_path, "Scene file", _MISSING_SCENE_HINTS)

        params: dict[str, Any] = {"scenePath": scene_path, "outputPath": output_path}
        mesh_item_names = self._get_list(args, "meshItemNames")
        if mesh_item_names:
            params["meshItemNames"] = mesh_item_names

        return await self._run_operation(
            "export_mesh_library",
            params,
            project,
            success_text=f"MeshLibrary exported successfully to: {output_path}",
            failure_text="Failed to export mesh library",
            suggestions=[
                "Check if the scene contains valid 3D meshes",
                "Ensure the output path is valid",
                "Verify the scene file is valid",
            ],
        )

    async def _handle_save_scene(self, args: dict[str, Any]) -> types.CallToolResult:
        project = self._resolve_project(args)
        scene_path = self._get_str(args, "scenePath")
        self._require_file(project, scene_path, "Scene file", _MISSING_SCENE_HINTS)

        params = {"scenePath": scene_path}
        new_path = self._get_str(args, "newPath")
        if new_path:
            params["newPath"] = new_path

        return await self._run_operation(
            "save_scene",
            params,
            project,
            success_text=f"Scene saved successfully to: {new_path or scene_path}",
            failure_text="Failed to save scene",
            suggestions=[
                "Check if the scene file is valid",
                "Ensure you have write permissions to the output path",
                "Verify the scene can be properly packed",
            ],
        )

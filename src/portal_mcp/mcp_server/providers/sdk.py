"""SDK Tool Provider - get-sdk-info, list-sdk-levels, export-sdk-level, regenerate-sdk-project.

Wraps the Battlefield Portal SDK layout and its gdconverter Python scripts.
"""

from __future__ import annotations

import logging
import os

from pathlib import Path
from typing import Any

from mcp import types

from portal_mcp.errors import ExternalScriptError, InvalidPathError, SdkNotFoundError
from portal_mcp.mcp_server.tool_providers import (
    ToolProvider,
    create_success_response,
)
from portal_mcp.mcp_utils.schema_util import SchemaBuilder, empty_schema
from portal_mcp.models import SdkInfo
from portal_mcp.paths import is_valid_project, to_absolute_path
from portal_mcp.project_scan import list_levels

logger = logging.getLogger(__name__)

EXPORT_SCRIPT = "export_tscn.py"
CREATE_PROJECT_SCRIPT = "create_godot.py"
DEFAULT_EXPORT_DIR = "portal_exports"

_EXPORT_DATA_HINTS = [
    "Install or extract the Battlefield Portal SDK assets",
    "Provide fbExportDataPath pointing to SDK/deps/FbExportData",
]


class SdkToolProvider(ToolProvider):
    HANDLERS = {
        "getsdkinfo": "_handle_get_sdk_info",
        "listsdklevels": "_handle_list_sdk_levels",
        "exportsdklevel": "_handle_export_sdk_level",
        "regeneratesdkproject": "_handle_regenerate_sdk_project",
    }

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="get-sdk-info",
                description="Show the detected Battlefield Portal SDK paths",
                inputSchema=empty_schema(),
            ),
            types.Tool(
                name="list-sdk-levels",
                description="List the Portal levels available in FbExportData",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("fbExportDataPath", "Path to SDK/deps/FbExportData (auto-detected if omitted)")
                    .string_property("projectPath", "Portal Godot project used to locate generated scenes and scripts")
                    .build()
                ),
            ),
            types.Tool(
                name="export-sdk-level",
                description="Export a Portal level scene to spatial JSON with the SDK's export_tscn.py",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("scenePath", "Level scene (.tscn), relative to the project or absolute")
                    .string_property("outputDir", "Output directory (defaults to <project>/portal_exports)")
                    .string_property("projectPath", "Portal Godot project directory")
                    .string_property("fbExportDataPath", "Path to SDK/deps/FbExportData")
                    .required("scenePath")
                    .build()
                ),
            ),
            types.Tool(
                name="regenerate-sdk-project",
                description="Regenerate the Portal Godot project from FbExportData with the SDK's create_godot.py",
                inputSchema=(
                    SchemaBuilder()
                    .string_property("fbExportDataPath", "Path to SDK/deps/FbExportData")
                    .string_property("outputDir", "Where to generate the project (defaults to the SDK's GodotProject)")
                    .boolean_property("overwriteLevels", "Overwrite existing level scenes", default=False)
                    .build()
                ),
            ),
        ]

    def _require_export_data(self, args: dict[str, Any]) -> str:
        explicit = self._get_str(args, "fbExportDataPath") or None
        export_data = self.ctx.resolver.resolve_export_data_path(explicit)
        if not export_data or not os.path.isdir(export_data):
            raise SdkNotFoundError("FbExportData path not found", _EXPORT_DATA_HINTS)
        return export_data

    def _require_converter(self, name: str) -> str:
        script = self.ctx.resolver.converter_script(name)
        if script is None:
            raise SdkNotFoundError(
                f"Could not locate {name} in the Battlefield Portal SDK",
                ["Verify the Portal SDK repository is available", "Set PORTAL_SDK_PATH to the SDK root"],
            )
        return script

    async def _handle_get_sdk_info(self, args: dict[str, Any]) -> types.CallToolResult:
        self.ctx.resolver.resolve_sdk_root()
        paths = self.ctx.paths
        info = SdkInfo(
            sdk_root=paths.sdk_root,
            sdk_root_exists=bool(paths.sdk_root) and os.path.exists(paths.sdk_root),
            project_path=paths.project_path,
            project_path_exists=bool(paths.project_path) and is_valid_project(paths.project_path),
            fb_export_data_path=paths.export_data_path,
            fb_export_data_path_exists=bool(paths.export_data_path) and os.path.exists(paths.export_data_path),
            python_command=paths.python_command,
            godot_path=paths.godot_path,
        )
        return create_success_response(info.model_dump(by_alias=True))

    async def _handle_list_sdk_levels(self, args: dict[str, Any]) -> types.CallToolResult:
        export_data = self._require_export_data(args)
        if not (Path(export_data) / "levels").is_dir():
            raise SdkNotFoundError(
                "Levels directory missing inside FbExportData",
                ["Verify the Battlefield Portal SDK installation is complete"],
            )

        project = self.ctx.resolver.resolve_project_path(self._get_str(args, "projectPath") or None)
        if project and not os.path.exists(project):
            project = None

        try:
            levels = list_levels(export_data, project, self.ctx.resolver)
        except OSError as e:
            raise SdkNotFoundError(
                f"Failed to enumerate Portal levels: {e}",
                ["Verify the FbExportData directory is accessible"],
            ) from e

        return create_success_response(
            {
                "fbExportDataPath": export_data,
                "projectPath": project,
                "count": len(levels),
                "levels": [level.model_dump(by_alias=True, exclude_none=True) for level in levels],
            },
        )

    async def _handle_export_sdk_level(self, args: dict[str, Any]) -> types.CallToolResult:
        scene_path = self._get_str(args, "scenePath")
        project = self._resolve_project(args)
        export_data = self._require_export_data(args)
        script = self._require_converter(EXPORT_SCRIPT)

        scene_file = to_absolute_path(project, scene_path)
        if not os.path.exists(scene_file):
            raise InvalidPathError(
                f"Scene file does not exist: {scene_file}",
                ["Ensure the scene path is correct relative to the project", "Open the scene in Godot to verify it exists"],
            )

        output_dir_arg = self._get_str(args, "outputDir")
        output_dir = to_absolute_path(project, output_dir_arg) if output_dir_arg else os.path.join(project, DEFAULT_EXPORT_DIR)
        os.makedirs(output_dir, exist_ok=True)

        result = await self.ctx.executor.run_interpreter_script(script, [scene_file, export_data, output_dir])
        if result.exit_code != 0:
            raise ExternalScriptError(
                f"Portal export script failed with exit code {result.exit_code}: {result.stderr.strip()}",
                ["Inspect the stdout/stderr output for details", "Verify the scene and FbExportData paths are correct"],
            )

        stdout = result.stdout.strip()
        lines = [line.strip() for line in stdout.splitlines() if line.strip()]
        exported_file = os.path.normpath(lines[-1]) if lines else None
        logger.info(f"Exported {scene_file} to {exported_file or output_dir}")
        return create_success_response(
            {
                "sceneFile": os.path.normpath(scene_file),
                "fbExportDataPath": export_data,
                "outputDir": os.path.normpath(output_dir),
                "exportedFile": exported_file,
                "stdout": stdout,
                "stderr": result.stderr.strip(),
            },
        )

    def _default_project_output(self) -> str:
        paths = self.ctx.paths
        if paths.project_path:
            return paths.project_path
        if paths.sdk_root:
            return os.path.join(paths.sdk_root, "GodotProject")
        return os.path.join(os.getcwd(), "PortalGodotProject")

    async def _handle_regenerate_sdk_project(self, args: dict[str, Any]) -> types.CallToolResult:
        self.ctx.resolver.resolve_sdk_root()
        export_data = self._require_export_data(args)
        script = self._require_converter(CREATE_PROJECT_SCRIPT)

        output_dir_arg = self._get_str(args, "outputDir")
        output_dir = os.path.normpath(output_dir_arg) if output_dir_arg else self._default_project_output()
        os.makedirs(output_dir, exist_ok=True)

        script_args = [export_data, output_dir]
        if self._get_bool(args, "overwriteLevels"):
            script_args.append("--overwrite-levels")

        result = await self.ctx.executor.run_interpreter_script(script, script_args)
        if result.exit_code != 0:
            raise ExternalScriptError(
                f"Portal project generation failed with exit code {result.exit_code}: {result.stderr.strip()}",
                ["Inspect the stdout/stderr output for details", "Ensure Python dependencies from SDK/requirements.txt are installed"],
            )

        self.ctx.paths.project_path = os.path.normpath(output_dir)
        logger.info(f"Portal project regenerated at {self.ctx.paths.project_path}")
        return create_success_response(
            {
                "projectPath": self.ctx.paths.project_path,
                "fbExportDataPath": export_data,
                "stdout": result.stdout.strip(),
                "stderr": result.stderr.strip(),
            },
        )

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DebugOutput(BaseModel):
    """Snapshot of the supervised Godot process output."""

    output: list[str] = Field(default_factory=list, description="Lines read from the child's stdout.")
    errors: list[str] = Field(default_factory=list, description="Lines read from the child's stderr.")


class StopResult(BaseModel):
    """Final state reported by stop-project."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Human-readable status.")
    final_output: list[str] = Field(default_factory=list, alias="finalOutput", description="Remaining stdout lines.")
    final_errors: list[str] = Field(default_factory=list, alias="finalErrors", description="Remaining stderr lines.")


class ProjectSummary(BaseModel):
    """A Godot project found by list-projects."""

    path: str = Field(..., description="Path of the project directory.")
    name: str = Field(..., description="Directory name of the project.")


class ProjectStructure(BaseModel):
    """File counts by category inside a project."""

    scenes: int = 0
    scripts: int = 0
    assets: int = 0
    other: int = 0
    error: str | None = Field(None, description="Set when the directory walk failed part-way.")


class ProjectInfo(BaseModel):
    """Metadata reported by get-project-info."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Application name from project.godot, or the directory name.")
    path: str = Field(..., description="Path of the project directory.")
    godot_version: str = Field(..., alias="godotVersion", description="Output of `godot --version`.")
    structure: ProjectStructure


class LevelInfo(BaseModel):
    """One level found in the FbExportData levels directory."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    spatial_path: str = Field(..., alias="spatialPath")
    info: Any = Field(None, description="Entry for this level in level_info.json, as stored there.")
    assets_scene: str | None = Field(None, alias="assetsScene")
    terrain_scene: str | None = Field(None, alias="terrainScene")
    script_directories: list[str] | None = Field(None, alias="scriptDirectories")


class SdkInfo(BaseModel):
    """Resolved SDK environment reported by get-sdk-info."""

    model_config = ConfigDict(populate_by_name=True)

    sdk_root: str | None = Field(None, alias="portalSdkPath")
    sdk_root_exists: bool = Field(False, alias="portalSdkPathExists")
    project_path: str | None = Field(None, alias="portalProjectPath")
    project_path_exists: bool = Field(False, alias="portalProjectPathExists")
    fb_export_data_path: str | None = Field(None, alias="fbExportDataPath")
    fb_export_data_path_exists: bool = Field(False, alias="fbExportDataPathExists")
    python_command: str | None = Field(None, alias="pythonCommand")
    godot_path: str | None = Field(None, alias="godotPath")

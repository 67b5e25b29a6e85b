"""Filesystem scans: project discovery, project structure counts, SDK levels."""

from __future__ import annotations

import json
import logging
import os
import re

from pathlib import Path
from typing import TYPE_CHECKING, Any

from portal_mcp.mcp_utils.debug_logger import DebugLogger
from portal_mcp.models import LevelInfo, ProjectStructure, ProjectSummary
from portal_mcp.paths import MANIFEST_FILE, is_valid_project

if TYPE_CHECKING:
    from portal_mcp.paths import PathResolver

logger = logging.getLogger(__name__)

SCENE_EXTENSIONS = frozenset({"tscn"})
SCRIPT_EXTENSIONS = frozenset({"gd", "gdscript", "cs"})
ASSET_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "webp", "svg", "ttf", "wav", "mp3", "ogg"})

SPATIAL_SUFFIX = ".spatial.json"

_CONFIG_NAME_RE = re.compile(r'config/name="([^"]+)"')


def find_projects(directory: str, recursive: bool = False) -> list[ProjectSummary]:
    """Find Godot projects under *directory*.

    Non-recursive: the directory itself and its immediate subdirectories.
    Recursive: the directory itself, then every non-hidden subdirectory,
    without descending into directories that are already projects.
    """
    projects: list[ProjectSummary] = []
    root = Path(os.path.abspath(directory))
    if is_valid_project(root):
        projects.append(ProjectSummary(path=str(root), name=root.name))
    projects.extend(_scan_children(root, recursive))
    return projects


def _scan_children(directory: Path, recursive: bool) -> list[ProjectSummary]:
    found: list[ProjectSummary] = []
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        DebugLogger.debug_with_exception(None, f"Error searching directory {directory}", e)
        return found

    for entry in entries:
        if not entry.is_dir():
            continue
        if recursive and entry.name.startswith("."):
            continue
        if is_valid_project(entry):
            found.append(ProjectSummary(path=str(entry), name=entry.name))
        elif recursive:
            found.extend(_scan_children(entry, True))
    return found


def scan_project_structure(project_path: str) -> ProjectStructure:
    """Count files by category, skipping hidden files and directories."""
    structure = ProjectStructure()
    try:
        for current, dirnames, filenames in os.walk(project_path, onerror=_raise):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for filename in filenames:
                if filename.startswith("."):
                    continue
                ext = filename.rsplit(".", 1)[-1].lower()
                if ext in SCENE_EXTENSIONS:
                    structure.scenes += 1
                elif ext in SCRIPT_EXTENSIONS:
                    structure.scripts += 1
                elif ext in ASSET_EXTENSIONS:
                    structure.assets += 1
                else:
                    structure.other += 1
    except OSError as e:
        DebugLogger.debug_with_exception(None, f"Error getting project structure for {project_path}", e)
        return ProjectStructure(error="Failed to get project structure")
    return structure


def _raise(error: OSError) -> None:
    raise error


def read_project_name(project_path: str) -> str:
    """``config/name`` from project.godot, falling back to the directory name."""
    fallback = Path(project_path).name
    try:
        content = (Path(project_path) / MANIFEST_FILE).read_text(encoding="utf-8")
    except OSError as e:
        DebugLogger.debug_with_exception(None, "Error reading project file", e)
        return fallback
    match = _CONFIG_NAME_RE.search(content)
    return match.group(1) if match else fallback


def read_json_file(path: Path) -> Any | None:
    """Parse a JSON file; None if it is missing or malformed."""
    if not path.is_file():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        DebugLogger.debug_with_exception(None, f"Failed to read JSON file {path}", e)
        return None


def list_levels(export_data_path: str, project_path: str | None, resolver: PathResolver) -> list[LevelInfo]:
    """Levels under ``<export>/levels``, annotated with metadata and generated scenes, sorted by name."""
    levels_dir = Path(export_data_path) / "levels"
    level_info = read_json_file(Path(export_data_path) / "level_info.json")
    if not isinstance(level_info, dict):
        level_info = {}

    levels: list[LevelInfo] = []
    for entry in levels_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(SPATIAL_SUFFIX):
            continue
        name = entry.name[: -len(SPATIAL_SUFFIX)]
        level = LevelInfo(name=name, spatial_path=str(entry), info=level_info.get(name) or None)

        if project_path:
            static_dir = Path(project_path) / "static"
            assets_scene = static_dir / f"{name}_Assets.tscn"
            terrain_scene = static_dir / f"{name}_Terrain.tscn"
            if assets_scene.exists():
                level.assets_scene = str(assets_scene)
            if terrain_scene.exists():
                level.terrain_scene = str(terrain_scene)
            script_dirs = resolver.find_level_script_directories(name, project_path)
            if script_dirs:
                level.script_directories = script_dirs

        levels.append(level)

    levels.sort(key=lambda level: level.name.lower())
    return levels

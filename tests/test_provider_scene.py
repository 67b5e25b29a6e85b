"""Unit tests for SceneToolProvider.

The fake Godot echoes its arguments, so the success text's ``Output:``
section shows exactly what the operations script would have received.
"""

from __future__ import annotations

import json

from pathlib import Path

import pytest

from portal_mcp.registry import PARAMETER_MAPPINGS
from tests.helpers import (
    assert_error_envelope,
    make_context,
    make_manager,
    make_project,
    posix_only,
    success_text,
    write_fake_godot,
)

pytestmark = posix_only


def _setup(tmp_path: Path, body: str | None = None):
    godot = write_fake_godot(tmp_path / "bin", body=body) if body else write_fake_godot(tmp_path / "bin")
    project = make_project(tmp_path / "game")
    (project / "scenes").mkdir()
    (project / "scenes" / "main.tscn").write_text("[gd_scene format=3]\n")
    (project / "icon.png").write_text("")
    return make_manager(make_context(godot_path=godot, project_path=project)), project


def _operation_params(text: str) -> dict:
    """The JSON argument line from the echoed command line."""
    output = text.split("Output: ", 1)[1]
    return json.loads(next(line for line in output.splitlines() if line.startswith("{")))


def test_every_schema_parameter_is_normalized(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    known = set(PARAMETER_MAPPINGS.values())
    for tool in manager.list_tools():
        assert set(tool.inputSchema["properties"]) <= known, tool.name
        assert set(tool.inputSchema["required"]) <= set(tool.inputSchema["properties"]), tool.name


@pytest.mark.asyncio
async def test_create_scene(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    text = success_text(await manager.call_tool("create-scene", {"scene_path": "scenes/level.tscn", "root_node_type": "Node3D"}))
    assert text.startswith("Scene created successfully at: scenes/level.tscn")
    assert "create_scene" in text
    assert _operation_params(text) == {"scene_path": "scenes/level.tscn", "root_node_type": "Node3D"}


@pytest.mark.asyncio
async def test_create_scene_defaults_root_type(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    text = success_text(await manager.call_tool("create-scene", {"scenePath": "scenes/level.tscn"}))
    assert _operation_params(text)["root_node_type"] == "Node2D"


@pytest.mark.asyncio
async def test_create_scene_failure_marker(tmp_path: Path):
    manager, _ = _setup(tmp_path, body='echo "Failed to instantiate root node of type: Bogus" 1>&2')
    result = await manager.call_tool("create-scene", {"scenePath": "scenes/level.tscn", "rootNodeType": "Bogus"})
    message, solutions = assert_error_envelope(result, "Failed to create scene: Failed to instantiate root node")
    assert "Check if the root node type is valid" in solutions


@pytest.mark.asyncio
async def test_add_node_with_properties(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool(
        "add-node",
        {
            "scenePath": "res://scenes/main.tscn",
            "parent_node_path": "root",
            "nodeType": "Sprite2D",
            "nodeName": "Player",
            "properties": {"zIndex": 2, "position": {"x": 1, "y": 2}},
        },
    )
    text = success_text(result)
    assert "Node 'Player' of type 'Sprite2D' added successfully" in text
    assert _operation_params(text) == {
        "scene_path": "res://scenes/main.tscn",
        "node_type": "Sprite2D",
        "node_name": "Player",
        "parent_node_path": "root",
        "properties": {"z_index": 2, "position": {"x": 1, "y": 2}},
    }


@pytest.mark.asyncio
async def test_add_node_missing_scene(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool("add-node", {"scenePath": "scenes/nope.tscn", "nodeType": "Node2D", "nodeName": "A"})
    _, solutions = assert_error_envelope(result, "Scene file does not exist: scenes/nope.tscn")
    assert "create-scene" in solutions


@pytest.mark.asyncio
async def test_add_node_requires_node_type(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool("add-node", {"scenePath": "scenes/main.tscn", "nodeName": "A"})
    _, solutions = assert_error_envelope(result, "Node type is required")
    assert "node_type" in solutions


@pytest.mark.asyncio
async def test_load_sprite_missing_texture(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool(
        "load-sprite",
        {"scenePath": "scenes/main.tscn", "nodePath": "root/Player", "texturePath": "art/missing.png"},
    )
    assert_error_envelope(result, "Texture file does not exist: art/missing.png")


@pytest.mark.asyncio
async def test_load_sprite(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool(
        "load-sprite",
        {"scenePath": "scenes/main.tscn", "nodePath": "root/Player", "texturePath": "res://icon.png"},
    )
    assert success_text(result).startswith("Sprite loaded successfully with texture: res://icon.png")


@pytest.mark.asyncio
async def test_export_mesh_library_accepts_comma_list(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool(
        "export-mesh-library",
        {"scenePath": "scenes/main.tscn", "outputPath": "lib/meshes.res", "mesh_item_names": "Wall, Floor"},
    )
    text = success_text(result)
    assert text.startswith("MeshLibrary exported successfully to: lib/meshes.res")
    assert _operation_params(text)["mesh_item_names"] == ["Wall", "Floor"]


@pytest.mark.asyncio
async def test_export_mesh_library_requires_output(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool("export-mesh-library", {"scenePath": "scenes/main.tscn"})
    assert_error_envelope(result, "Output path is required")


@pytest.mark.asyncio
async def test_save_scene_as_new_path(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool("save-scene", {"scenePath": "scenes/main.tscn", "newPath": "scenes/copy.tscn"})
    text = success_text(result)
    assert text.startswith("Scene saved successfully to: scenes/copy.tscn")
    assert _operation_params(text) == {"scene_path": "scenes/main.tscn", "new_path": "scenes/copy.tscn"}


@pytest.mark.asyncio
async def test_save_scene_rejects_traversal(tmp_path: Path):
    manager, _ = _setup(tmp_path)
    result = await manager.call_tool("save-scene", {"scenePath": "scenes/main.tscn", "newPath": "../escape.tscn"})
    assert_error_envelope(result, "Invalid new path")

from __future__ import annotations

from pathlib import Path

import pytest

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

PRINT_UID = 'echo "uid://cjx2o4tcbp0ab"'


def _manager(tmp_path: Path, version: str, body: str = PRINT_UID):
    godot = write_fake_godot(tmp_path / "bin", body=body, version=version)
    project = make_project(tmp_path / "game")
    (project / "icon.png").write_text("")
    return make_manager(make_context(godot_path=godot)), project


@pytest.mark.asyncio
async def test_get_resource_id(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.4.stable")
    result = await manager.call_tool("get-resource-id", {"projectPath": str(project), "filePath": "icon.png"})
    assert success_text(result) == "UID for icon.png: uid://cjx2o4tcbp0ab"


@pytest.mark.asyncio
async def test_get_resource_id_legacy_name(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.5.dev")
    result = await manager.call_tool("get_uid", {"project_path": str(project), "file_path": "res://icon.png"})
    assert success_text(result).endswith("uid://cjx2o4tcbp0ab")


@pytest.mark.asyncio
async def test_old_godot_is_refused(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.3.stable")
    result = await manager.call_tool("get-resource-id", {"projectPath": str(project), "filePath": "icon.png"})
    message, solutions = assert_error_envelope(result)
    assert message == "Resource UIDs requires Godot 4.4 or later. Current version: 4.3.stable"
    assert "Upgrade to Godot 4.4 or later" in solutions


@pytest.mark.asyncio
async def test_missing_file(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.4.stable")
    result = await manager.call_tool("get-resource-id", {"projectPath": str(project), "filePath": "gone.png"})
    assert_error_envelope(result, "File does not exist: gone.png")


@pytest.mark.asyncio
async def test_get_resource_id_script_failure(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.4.stable", body='echo "Failed to get UID for: res://icon.png" 1>&2')
    result = await manager.call_tool("get-resource-id", {"projectPath": str(project), "filePath": "icon.png"})
    assert_error_envelope(result, "Failed to get UID")


@pytest.mark.asyncio
async def test_update_resource_ids(tmp_path: Path):
    manager, project = _manager(tmp_path, "4.4.1.stable", body='echo "Resaved 3 resources"')
    text = success_text(await manager.call_tool("update-resource-ids", {"projectPath": str(project)}))
    assert text.startswith("Project UIDs updated successfully.")
    assert "Resaved 3 resources" in text


@pytest.mark.asyncio
async def test_update_resource_ids_old_godot(tmp_path: Path):
    manager, project = _manager(tmp_path, "3.6.stable")
    result = await manager.call_tool("update_project_uids", {"projectPath": str(project)})
    assert_error_envelope(result, "requires Godot 4.4 or later")

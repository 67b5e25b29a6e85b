"""Test helper utilities for the Portal MCP tests.

Provides common functionality used across multiple test modules:
- Fake Godot executables (POSIX shell scripts)
- Throwaway Godot projects and Portal SDK layouts
- EnvironmentContext construction without environment overrides
- Response envelope validation
"""

from __future__ import annotations

import asyncio
import json
import os
import stat
import sys

from pathlib import Path
from typing import Any, Callable

import pytest

from mcp import types

from portal_mcp.config.config_manager import ConfigManager
from portal_mcp.context import EnvironmentContext
from portal_mcp.mcp_server.tool_providers import ToolProviderManager

posix_only = pytest.mark.skipif(
    sys.platform == "win32",
    reason="Fake Godot executables are POSIX shell scripts",
)

DEFAULT_GODOT_VERSION = "4.4.1.stable.official"

# Prints every argument on its own line.
ECHO_ARGS = r"""for arg in "$@"; do printf '%s\n' "$arg"; done"""

# Behaves like a running game: some output on both streams, then blocks.
RUNNING_GAME = """echo "Godot Engine v4.4.1 - https://godotengine.org"
echo "game ready"
echo "WARNING: something odd" 1>&2
exec sleep 30"""

EXPORT_TSCN_SCRIPT = """import os
import sys

scene, export_data, output_dir = sys.argv[1:4]
name = os.path.splitext(os.path.basename(scene))[0]
target = os.path.join(output_dir, name + ".spatial.json")
with open(target, "w") as f:
    f.write("{}")
print("Exporting " + scene)
print(target)
"""

CREATE_GODOT_SCRIPT = """import sys

print("args: " + " ".join(sys.argv[1:]))
"""

FAILING_SCRIPT = """import sys

sys.stderr.write("boom\\n")
sys.exit(3)
"""


def write_executable(path: Path, content: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def write_fake_godot(directory: Path, body: str = ECHO_ARGS, version: str = DEFAULT_GODOT_VERSION, name: str = "godot") -> str:
    """Write a shell script that answers ``--version`` and otherwise runs *body*."""
    script = f"""#!/bin/sh
if [ "$1" = "--version" ]; then
  echo '{version}'
  exit 0
fi
{body}
"""
    return write_executable(directory / name, script)


def make_project(path: Path, name: str | None = None) -> Path:
    """Create a directory holding a minimal project.godot."""
    path.mkdir(parents=True, exist_ok=True)
    manifest = "config_version=5\n\n[application]\n\n"
    if name:
        manifest += f'config/name="{name}"\n'
    (path / "project.godot").write_text(manifest, encoding="utf-8")
    return path


def make_sdk(root: Path, with_converters: bool = True, with_levels: bool = True) -> Path:
    """Create a Portal SDK layout: SDK/deps/FbExportData, GodotProject, gdconverter scripts."""
    export_data = root / "SDK" / "deps" / "FbExportData"
    export_data.mkdir(parents=True, exist_ok=True)
    if with_levels:
        (export_data / "levels").mkdir(exist_ok=True)
    make_project(root / "GodotProject", "PortalProject")
    if with_converters:
        converter_dir = converter_directory(root)
        converter_dir.mkdir(parents=True, exist_ok=True)
        (converter_dir / "export_tscn.py").write_text(EXPORT_TSCN_SCRIPT, encoding="utf-8")
        (converter_dir / "create_godot.py").write_text(CREATE_GODOT_SCRIPT, encoding="utf-8")
    return root


def converter_directory(sdk_root: Path) -> Path:
    return sdk_root / "SDK" / "deps" / "gdconverter" / "src" / "gdconverter"


def make_context(
    godot_path: str | None = None,
    python_path: str | None = None,
    sdk_path: str | os.PathLike[str] | None = None,
    project_path: str | os.PathLike[str] | None = None,
    strict: bool = False,
) -> EnvironmentContext:
    """EnvironmentContext with explicit settings and no environment overrides."""
    config = ConfigManager(apply_env=False)
    if godot_path:
        config.set_godot_path(godot_path)
    if python_path:
        config.set_python_path(python_path)
    if sdk_path:
        config.set_sdk_path(str(sdk_path))
    if project_path:
        config.set_project_path(str(project_path))
    if strict:
        config.set_strict_path_validation(True)
    return EnvironmentContext.create(config)


def make_manager(ctx: EnvironmentContext) -> ToolProviderManager:
    manager = ToolProviderManager(ctx)
    manager.register_all_providers()
    return manager


def success_text(result: types.CallToolResult) -> str:
    assert result is not None
    assert result.isError is False, result.content
    assert len(result.content) == 1
    first = result.content[0]
    assert first.type == "text"
    assert isinstance(first.text, str)
    return first.text


def parse_single_text_content_json(result: types.CallToolResult) -> Any:
    text = success_text(result)
    assert text.strip() != ""
    return json.loads(text)


def assert_error_envelope(result: types.CallToolResult, must_contain: str | None = None) -> tuple[str, str]:
    """Check the two-block error envelope and return (message, solutions)."""
    assert result is not None
    assert result.isError is True
    assert len(result.content) == 2
    message, solutions = (block.text for block in result.content)
    assert solutions.startswith("Possible solutions:\n- ")
    if must_contain is not None:
        assert must_contain in message, message
    return message, solutions


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.05) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            return False
        await asyncio.sleep(interval)
    return True

from __future__ import annotations

from pathlib import Path

import pytest

from portal_mcp.mcp_utils.debug_logger import DebugLogger

_ENV_VARS = (
    "GODOT_PATH",
    "PORTAL_SDK_PATH",
    "PORTAL_PROJECT_PATH",
    "PORTAL_FB_EXPORT_PATH",
    "PYTHON_PATH",
    "PORTAL_MCP_PORT",
    "PORTAL_MCP_HOST",
    "PORTAL_MCP_STRICT_PATH_VALIDATION",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """No path variables from the developer's shell, and a scratch working directory."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    DebugLogger.set_debug_enabled(False)
    yield
    DebugLogger.set_debug_enabled(False)

"""Test Portal MCP configuration file loading and options.

Verifies that:
- Configuration files can be loaded
- Environment variables override the file
- Invalid configs are handled gracefully
- Configured paths are seeded into the resolved paths
"""

from __future__ import annotations

import json
import os

from pathlib import Path
from typing import Any

import pytest

from portal_mcp.config.config_manager import ConfigManager
from portal_mcp.context import EnvironmentContext
from portal_mcp.mcp_utils.debug_logger import DebugLogger


def _write_config(path: Path, options: dict[str, Any]) -> Path:
    path.write_text(json.dumps({ConfigManager.SERVER_OPTIONS: options}), encoding="utf-8")
    return path


class TestConfigurationLoading:
    def test_default_configuration(self):
        config = ConfigManager(apply_env=False)
        assert config.get_server_port() == 8080
        assert config.get_server_host() == "127.0.0.1"
        assert config.is_debug_mode() is False
        assert config.is_strict_path_validation() is False
        assert config.is_godot_debug_flag() is True
        assert config.get_version_probe_timeout_seconds() == 10
        assert config.get_godot_path() is None
        assert config.get_sdk_path() is None

    def test_file_configuration_loading(self, tmp_path: Path):
        config_file = _write_config(
            tmp_path / "portal.json",
            {
                ConfigManager.SERVER_PORT: 9001,
                ConfigManager.SDK_PATH: "/opt/PortalSDK",
                ConfigManager.GODOT_PATH: "/opt/godot/godot",
                ConfigManager.GODOT_DEBUG_FLAG: False,
                ConfigManager.DEBUG_MODE: True,
            },
        )
        config = ConfigManager(config_file=config_file, apply_env=False)
        assert config.get_server_port() == 9001
        assert config.get_sdk_path() == "/opt/PortalSDK"
        assert config.get_godot_path() == "/opt/godot/godot"
        assert config.is_godot_debug_flag() is False
        assert config.is_debug_mode() is True
        assert DebugLogger.is_debug_enabled() is True

    def test_malformed_file_uses_defaults(self, tmp_path: Path):
        config_file = tmp_path / "broken.json"
        config_file.write_text("{not json", encoding="utf-8")
        config = ConfigManager(config_file=config_file, apply_env=False)
        assert config.get_server_port() == 8080

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        config = ConfigManager(config_file=tmp_path / "absent.json", apply_env=False)
        assert config.get_server_port() == 8080
        assert config.get_sdk_path() is None


class TestEnvironmentOverrides:
    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        config_file = _write_config(tmp_path / "portal.json", {ConfigManager.SERVER_PORT: 9001})
        monkeypatch.setenv("PORTAL_MCP_PORT", "9100")
        monkeypatch.setenv("PORTAL_MCP_HOST", "0.0.0.0")
        monkeypatch.setenv("PORTAL_MCP_STRICT_PATH_VALIDATION", "yes")
        monkeypatch.setenv("DEBUG", "true")

        config = ConfigManager(config_file=config_file)

        assert config.get_server_port() == 9100
        assert config.get_server_host() == "0.0.0.0"
        assert config.is_strict_path_validation() is True
        assert config.is_debug_mode() is True
        assert DebugLogger.is_debug_enabled() is True

    def test_invalid_port_is_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PORTAL_MCP_PORT", "eighty")
        assert ConfigManager().get_server_port() == 8080

    def test_overrides_are_not_persisted(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        config_file = _write_config(tmp_path / "portal.json", {ConfigManager.SERVER_PORT: 9001})
        monkeypatch.setenv("PORTAL_MCP_PORT", "9100")
        ConfigManager(config_file=config_file)
        saved = json.loads(config_file.read_text(encoding="utf-8"))
        assert saved[ConfigManager.SERVER_OPTIONS][ConfigManager.SERVER_PORT] == 9001

    def test_apply_env_false_ignores_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PORTAL_MCP_PORT", "9100")
        assert ConfigManager(apply_env=False).get_server_port() == 8080


class TestConfigurationEdgeCases:
    def test_port_range_is_validated(self):
        config = ConfigManager(apply_env=False)
        with pytest.raises(ValueError):
            config.set_server_port(0)
        with pytest.raises(ValueError):
            config.set_server_port(70000)
        config.set_server_port(65535)
        assert config.get_server_port() == 65535

    def test_empty_host_rejected(self):
        with pytest.raises(ValueError):
            ConfigManager(apply_env=False).set_server_host("   ")

    def test_probe_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            ConfigManager(apply_env=False).set_version_probe_timeout_seconds(0)


class TestContextSeeding:
    def test_configured_paths_are_seeded(self, tmp_path: Path):
        config = ConfigManager(apply_env=False)
        config.set_sdk_path(str(tmp_path / "sdk" / "."))
        config.set_project_path(str(tmp_path / "proj"))
        config.set_fb_export_path(str(tmp_path / "export"))
        ctx = EnvironmentContext.create(config)
        assert ctx.paths.sdk_root == os.path.normpath(str(tmp_path / "sdk"))
        assert ctx.paths.project_path == str(tmp_path / "proj")
        assert ctx.paths.export_data_path == str(tmp_path / "export")
        assert ctx.paths.godot_path is None

    def test_resolved_paths_use_camel_case_keys(self):
        ctx = EnvironmentContext.create(ConfigManager(apply_env=False))
        assert set(ctx.paths.as_dict()) == {"godotPath", "sdkRoot", "projectPath", "fbExportDataPath", "pythonCommand"}

"""Configuration manager for the Portal MCP server.

Options live in an optional JSON file grouped by category; environment
variables override the file; command-line flags override both (applied by the
entry points through the setters below).
"""

from __future__ import annotations

import json
import logging
import os

from pathlib import Path
from typing import Any

from portal_mcp.mcp_utils.debug_logger import DebugLogger

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "on")


class ConfigManager:
    """Configuration manager for the Portal MCP server."""

    # Configuration option categories
    SERVER_OPTIONS = "Portal MCP Server Options"

    # Option names
    SERVER_PORT = "Server Port"
    SERVER_HOST = "Server Host"
    DEBUG_MODE = "Debug Mode"
    GODOT_PATH = "Godot Path"
    SDK_PATH = "SDK Path"
    PROJECT_PATH = "Project Path"
    FB_EXPORT_PATH = "FbExportData Path"
    PYTHON_PATH = "Python Path"
    STRICT_PATH_VALIDATION = "Strict Path Validation"
    GODOT_DEBUG_FLAG = "Godot Debug Flag"
    VERSION_PROBE_TIMEOUT_SECONDS = "Version Probe Timeout Seconds"

    # Default values
    DEFAULT_PORT = 8080
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_DEBUG_MODE = False
    DEFAULT_STRICT_PATH_VALIDATION = False
    DEFAULT_GODOT_DEBUG_FLAG = True
    DEFAULT_VERSION_PROBE_TIMEOUT_SECONDS = 10

    def __init__(self, config_file: Path | None = None, apply_env: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional path to configuration file
            apply_env: Apply environment variable overrides (disabled in tests)
        """
        self.config_file = config_file
        self._config: dict[str, dict[str, Any]] = {}

        self._load_config()

        if apply_env:
            self._apply_env_overrides()

    def _load_config(self) -> None:
        """Load configuration from file if available."""
        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    self._config = json.load(f)
                DebugLogger.debug(self, f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load config file {self.config_file}: {e}")
                self._config = {}
        else:
            self._config = {}

        if not isinstance(self._config.get(self.SERVER_OPTIONS), dict):
            self._config[self.SERVER_OPTIONS] = {}

        if self._config[self.SERVER_OPTIONS].get(self.DEBUG_MODE):
            DebugLogger.set_debug_enabled(True)

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides.

        Path-valued variables are deliberately *not* copied here: the path
        resolver reads them itself so that the documented precedence (explicit
        > cached > environment > auto-detected) holds.
        """
        if "PORTAL_MCP_PORT" in os.environ:
            try:
                self._set_option(self.SERVER_OPTIONS, self.SERVER_PORT, int(os.environ["PORTAL_MCP_PORT"]))
            except ValueError:
                logger.warning("Invalid PORTAL_MCP_PORT value")

        host = os.environ.get("PORTAL_MCP_HOST", "").strip()
        if host:
            self._set_option(self.SERVER_OPTIONS, self.SERVER_HOST, host)

        if "PORTAL_MCP_STRICT_PATH_VALIDATION" in os.environ:
            strict = os.environ["PORTAL_MCP_STRICT_PATH_VALIDATION"].strip().lower() in _TRUTHY
            self._set_option(self.SERVER_OPTIONS, self.STRICT_PATH_VALIDATION, strict)

        if "DEBUG" in os.environ:
            debug_enabled = os.environ["DEBUG"].strip().lower() in _TRUTHY
            self._set_option(self.SERVER_OPTIONS, self.DEBUG_MODE, debug_enabled)
            DebugLogger.set_debug_enabled(debug_enabled)

    def _get_option(self, category: str, name: str, default_value: Any = None) -> Any:
        category_config = self._config.get(category, {})
        return category_config.get(name, default_value)

    def _set_option(self, category: str, name: str, value: Any) -> None:
        self._config.setdefault(category, {})[name] = value

    # Server configuration methods
    def get_server_port(self) -> int:
        """Get the HTTP transport port."""
        return int(self._get_option(self.SERVER_OPTIONS, self.SERVER_PORT, self.DEFAULT_PORT))

    def set_server_port(self, port: int) -> None:
        if port < 1 or port > 65535:
            raise ValueError("Port must be between 1 and 65535")
        self._set_option(self.SERVER_OPTIONS, self.SERVER_PORT, port)

    def get_server_host(self) -> str:
        """Get the HTTP transport host."""
        return self._get_option(self.SERVER_OPTIONS, self.SERVER_HOST, self.DEFAULT_HOST)

    def set_server_host(self, host: str) -> None:
        if not host or not host.strip():
            raise ValueError("Host cannot be empty")
        self._set_option(self.SERVER_OPTIONS, self.SERVER_HOST, host.strip())

    # Debug configuration methods
    def is_debug_mode(self) -> bool:
        return bool(self._get_option(self.SERVER_OPTIONS, self.DEBUG_MODE, self.DEFAULT_DEBUG_MODE))

    def set_debug_mode(self, enabled: bool) -> None:
        self._set_option(self.SERVER_OPTIONS, self.DEBUG_MODE, bool(enabled))
        DebugLogger.set_debug_enabled(enabled)

    # Tool path configuration methods
    def get_godot_path(self) -> str | None:
        """Godot executable configured in the file or on the command line."""
        return self._get_option(self.SERVER_OPTIONS, self.GODOT_PATH)

    def set_godot_path(self, path: str) -> None:
        self._set_option(self.SERVER_OPTIONS, self.GODOT_PATH, path)

    def get_sdk_path(self) -> str | None:
        return self._get_option(self.SERVER_OPTIONS, self.SDK_PATH)

    def set_sdk_path(self, path: str) -> None:
        self._set_option(self.SERVER_OPTIONS, self.SDK_PATH, path)

    def get_project_path(self) -> str | None:
        return self._get_option(self.SERVER_OPTIONS, self.PROJECT_PATH)

    def set_project_path(self, path: str) -> None:
        self._set_option(self.SERVER_OPTIONS, self.PROJECT_PATH, path)

    def get_fb_export_path(self) -> str | None:
        return self._get_option(self.SERVER_OPTIONS, self.FB_EXPORT_PATH)

    def set_fb_export_path(self, path: str) -> None:
        self._set_option(self.SERVER_OPTIONS, self.FB_EXPORT_PATH, path)

    def get_python_path(self) -> str | None:
        return self._get_option(self.SERVER_OPTIONS, self.PYTHON_PATH)

    def set_python_path(self, path: str) -> None:
        self._set_option(self.SERVER_OPTIONS, self.PYTHON_PATH, path)

    # Behaviour switches
    def is_strict_path_validation(self) -> bool:
        """When true, a missing Godot executable is fatal instead of falling back to a default path."""
        return bool(self._get_option(self.SERVER_OPTIONS, self.STRICT_PATH_VALIDATION, self.DEFAULT_STRICT_PATH_VALIDATION))

    def set_strict_path_validation(self, strict: bool) -> None:
        self._set_option(self.SERVER_OPTIONS, self.STRICT_PATH_VALIDATION, bool(strict))

    def is_godot_debug_flag(self) -> bool:
        """Whether ``--debug-godot`` is appended to operations-script invocations."""
        return bool(self._get_option(self.SERVER_OPTIONS, self.GODOT_DEBUG_FLAG, self.DEFAULT_GODOT_DEBUG_FLAG))

    def set_godot_debug_flag(self, enabled: bool) -> None:
        self._set_option(self.SERVER_OPTIONS, self.GODOT_DEBUG_FLAG, bool(enabled))

    def get_version_probe_timeout_seconds(self) -> float:
        return float(self._get_option(self.SERVER_OPTIONS, self.VERSION_PROBE_TIMEOUT_SECONDS, self.DEFAULT_VERSION_PROBE_TIMEOUT_SECONDS))

    def set_version_probe_timeout_seconds(self, timeout: float) -> None:
        if timeout <= 0:
            raise ValueError("Timeout must be positive")
        self._set_option(self.SERVER_OPTIONS, self.VERSION_PROBE_TIMEOUT_SECONDS, timeout)

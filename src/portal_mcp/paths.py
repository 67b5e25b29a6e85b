"""Path resolution for the Godot executable, the Portal SDK, and project paths.

Precedence for every resolved path: explicit per-call argument, then the
cached value, then the environment variable, then auto-detection.  A value
from the configuration file counts as explicit and is seeded at startup.
"""

from __future__ import annotations

import logging
import os
import re
import sys

from pathlib import Path, PureWindowsPath
from typing import TYPE_CHECKING, Iterator

from portal_mcp.errors import ExternalScriptError, ToolNotFoundError, UnsupportedVersionError
from portal_mcp.executor import probe_version
from portal_mcp.mcp_utils.debug_logger import DebugLogger

if TYPE_CHECKING:
    from portal_mcp.config.config_manager import ConfigManager
    from portal_mcp.context import ResolvedPaths

logger = logging.getLogger(__name__)

MANIFEST_FILE = "project.godot"
BARE_GODOT_COMMAND = "godot"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)")
_WINDOWS_ABSOLUTE_RE = re.compile(r"^[A-Za-z]:[\\/]")
_RES_PREFIX = "res://"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def has_parent_segment(value: str) -> bool:
    """True if *value* contains a ``..`` path segment (either separator)."""
    return any(segment == ".." for segment in re.split(r"[\\/]", value))


def is_absolute_path(value: str) -> bool:
    return value.startswith("/") or value.startswith("\\") or bool(_WINDOWS_ABSOLUTE_RE.match(value))


def to_absolute_path(base: str, target: str) -> str:
    """Resolve *target* against the project directory *base*.

    ``res://`` paths are project-relative; POSIX and drive-letter absolutes are
    returned unchanged; anything else is joined onto *base*.
    """
    if target.startswith(_RES_PREFIX):
        target = target[len(_RES_PREFIX):]
    elif is_absolute_path(target):
        return target
    if _WINDOWS_ABSOLUTE_RE.match(base):
        return str(PureWindowsPath(base, target))
    return os.path.normpath(os.path.join(base, target))


def is_valid_project(path: str | os.PathLike[str]) -> bool:
    """A Godot project is a directory holding ``project.godot``."""
    return (Path(path) / MANIFEST_FILE).is_file()


def is_valid_sdk_root(path: str | os.PathLike[str]) -> bool:
    root = Path(path)
    return (
        (root / "SDK").is_dir()
        and (root / "GodotProject" / MANIFEST_FILE).is_file()
        and (root / "SDK" / "deps" / "FbExportData").is_dir()
    )


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.expanduser(path))


def _default_godot_path() -> str:
    if sys.platform == "darwin":
        return "/Applications/Godot.app/Contents/MacOS/Godot"
    if sys.platform == "win32":
        return "C:\\Program Files\\Godot\\Godot.exe"
    return "/usr/bin/godot"


def _platform_godot_candidates() -> list[str]:
    home = os.path.expanduser("~")
    if sys.platform == "darwin":
        return [
            "/Applications/Godot.app/Contents/MacOS/Godot",
            "/Applications/Godot_4.app/Contents/MacOS/Godot",
            f"{home}/Applications/Godot.app/Contents/MacOS/Godot",
            f"{home}/Applications/Godot_4.app/Contents/MacOS/Godot",
            f"{home}/Library/Application Support/Steam/steamapps/common/Godot Engine/Godot.app/Contents/MacOS/Godot",
        ]
    if sys.platform == "win32":
        user_profile = os.environ.get("USERPROFILE", home)
        return [
            "C:\\Program Files\\Godot\\Godot.exe",
            "C:\\Program Files (x86)\\Godot\\Godot.exe",
            "C:\\Program Files\\Godot_4\\Godot.exe",
            "C:\\Program Files (x86)\\Godot_4\\Godot.exe",
            f"{user_profile}\\Godot\\Godot.exe",
        ]
    return [
        "/usr/bin/godot",
        "/usr/local/bin/godot",
        "/snap/bin/godot",
        f"{home}/.local/bin/godot",
    ]


class PathResolver:
    """Finds the Godot executable and the Portal SDK layout, caching what it learns."""

    def __init__(self, config: ConfigManager, resolved: ResolvedPaths, package_dir: Path | None = None) -> None:
        self.config = config
        self.resolved = resolved
        self.package_dir: Path = package_dir or Path(__file__).resolve().parent
        # candidate -> validated?  Invalid entries are skipped during discovery.
        self.validation_cache: dict[str, bool] = {}

    def seed_from_config(self) -> None:
        """Copy configured (explicit) SDK/project/export/interpreter paths into the cache."""
        sdk = self.config.get_sdk_path()
        if sdk:
            self.resolved.sdk_root = _normalize(sdk)
        project = self.config.get_project_path()
        if project:
            self.resolved.project_path = _normalize(project)
        export = self.config.get_fb_export_path()
        if export:
            self.resolved.export_data_path = _normalize(export)

    # ------------------------------------------------------------------
    # Godot executable
    # ------------------------------------------------------------------

    def _probe_timeout(self) -> float:
        return self.config.get_version_probe_timeout_seconds()

    def _godot_candidates(self) -> Iterator[str]:
        seen: set[str] = set()
        configured = self.config.get_godot_path()
        env_path = os.environ.get("GODOT_PATH", "").strip()
        ordered = [
            _normalize(configured) if configured else None,
            _normalize(env_path) if env_path else None,
            BARE_GODOT_COMMAND,
            *_platform_godot_candidates(),
        ]
        for candidate in ordered:
            if candidate and candidate not in seen:
                seen.add(candidate)
                yield candidate

    async def _validate_godot(self, candidate: str) -> bool:
        cached = self.validation_cache.get(candidate)
        if cached is not None:
            return cached

        if candidate != BARE_GODOT_COMMAND and not os.path.exists(candidate):
            DebugLogger.debug(self, f"Godot candidate does not exist: {candidate}")
            self.validation_cache[candidate] = False
            return False

        version = await probe_version(candidate, self._probe_timeout())
        valid = version is not None and _VERSION_RE.match(version) is not None
        self.validation_cache[candidate] = valid
        DebugLogger.debug(self, f"Godot candidate {candidate}: {'valid' if valid else 'invalid'}")
        return valid

    async def resolve_godot(self) -> str:
        """Return the Godot executable, discovering it on first use."""
        if self.resolved.godot_path:
            return self.resolved.godot_path

        for candidate in self._godot_candidates():
            if await self._validate_godot(candidate):
                self.resolved.godot_path = candidate
                logger.info(f"Using Godot at {candidate}")
                return candidate

        if self.config.is_strict_path_validation():
            raise ToolNotFoundError("Could not find a valid Godot executable")

        fallback = _default_godot_path()
        logger.warning(f"Could not find a valid Godot executable; falling back to {fallback}")
        # Unvalidated, so never cached.
        return fallback

    async def set_godot_path(self, path: str) -> bool:
        """Explicitly select a Godot executable.  Always re-probes, even if cached as invalid."""
        candidate = _normalize(path)
        self.validation_cache.pop(candidate, None)
        if await self._validate_godot(candidate):
            self.resolved.godot_path = candidate
            logger.info(f"Godot path set to {candidate}")
            return True
        logger.warning(f"Rejected Godot path {candidate}")
        return False

    async def get_godot_version(self) -> str:
        godot_path = await self.resolve_godot()
        version = await probe_version(godot_path, self._probe_timeout())
        if version is None:
            raise ExternalScriptError(f"Failed to get Godot version from {godot_path}")
        return version

    @staticmethod
    def is_version_at_least(version: str, minimum: tuple[int, int]) -> bool:
        match = _VERSION_RE.match(version.strip())
        if match is None:
            return False
        return (int(match.group(1)), int(match.group(2))) >= minimum

    async def require_version(self, minimum: tuple[int, int], feature: str) -> str:
        version = await self.get_godot_version()
        if not self.is_version_at_least(version, minimum):
            raise UnsupportedVersionError(
                f"{feature} requires Godot {minimum[0]}.{minimum[1]} or later. Current version: {version}",
            )
        return version

    # ------------------------------------------------------------------
    # Portal SDK
    # ------------------------------------------------------------------

    @staticmethod
    def find_sdk_root_from(start: str | os.PathLike[str]) -> str | None:
        """Walk upward from *start*; at each level try the level itself and ``<level>/PortalSDK``."""
        current = Path(start).resolve()
        while True:
            if is_valid_sdk_root(current):
                return str(current)
            nested = current / "PortalSDK"
            if is_valid_sdk_root(nested):
                return str(nested)
            if current.parent == current:
                return None
            current = current.parent

    def _sdk_candidates(self, explicit: str | None) -> Iterator[str]:
        if explicit:
            yield _normalize(explicit)
        if self.resolved.sdk_root:
            yield self.resolved.sdk_root
        env_root = os.environ.get("PORTAL_SDK_PATH", "").strip()
        if env_root:
            yield _normalize(env_root)
        for start in (Path.cwd(), self.package_dir, self.package_dir.parent):
            found = self.find_sdk_root_from(start)
            if found:
                yield found

    def resolve_sdk_root(self, explicit: str | None = None) -> str | None:
        """Find the SDK root and fill in the project and FbExportData paths derived from it.

        Re-running this is idempotent: cached values are never replaced by
        lower-precedence sources.
        """
        if not self.resolved.project_path:
            env_project = os.environ.get("PORTAL_PROJECT_PATH", "").strip()
            if env_project:
                self.resolved.project_path = _normalize(env_project)
        if not self.resolved.export_data_path:
            env_export = os.environ.get("PORTAL_FB_EXPORT_PATH", "").strip()
            if env_export:
                self.resolved.export_data_path = _normalize(env_export)

        for candidate in self._sdk_candidates(explicit):
            if is_valid_sdk_root(candidate):
                if candidate != self.resolved.sdk_root:
                    DebugLogger.debug(self, f"Detected Portal SDK path: {candidate}")
                self.resolved.sdk_root = candidate
                break

        root = self.resolved.sdk_root
        if root:
            project_candidate = os.path.join(root, "GodotProject")
            if not self.resolved.project_path and is_valid_project(project_candidate):
                self.resolved.project_path = project_candidate
                DebugLogger.debug(self, f"Detected Portal project path: {project_candidate}")
            export_candidate = os.path.join(root, "SDK", "deps", "FbExportData")
            if not self.resolved.export_data_path and os.path.isdir(export_candidate):
                self.resolved.export_data_path = export_candidate
                DebugLogger.debug(self, f"Detected FbExportData path: {export_candidate}")
        return root

    def resolve_project_path(self, explicit: str | None = None) -> str | None:
        if explicit:
            return _normalize(explicit)
        self.resolve_sdk_root()
        return self.resolved.project_path

    def resolve_export_data_path(self, explicit: str | None = None) -> str | None:
        if explicit:
            return _normalize(explicit)
        self.resolve_sdk_root()
        return self.resolved.export_data_path

    def converter_script(self, name: str) -> str | None:
        """Path of a gdconverter script inside the SDK, if present."""
        root = self.resolve_sdk_root()
        if not root:
            return None
        script = Path(root) / "SDK" / "deps" / "gdconverter" / "src" / "gdconverter" / name
        return str(script) if script.is_file() else None

    def find_level_script_directories(self, level: str, project: str | None = None) -> list[str]:
        """``<project>/scripts/<group>/<level>`` directories that exist."""
        project = project or self.resolved.project_path
        if not project:
            return []
        scripts_dir = Path(project) / "scripts"
        if not scripts_dir.is_dir():
            return []
        result: list[str] = []
        try:
            for group in sorted(scripts_dir.iterdir()):
                level_dir = group / level
                if group.is_dir() and level_dir.exists():
                    result.append(str(level_dir))
        except OSError as e:
            DebugLogger.debug_with_exception(self, f"Failed to scan script directories in {scripts_dir}", e)
        return result

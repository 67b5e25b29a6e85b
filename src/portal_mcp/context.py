"""Shared server state.

One :class:`EnvironmentContext` is built per server (or CLI invocation) and
handed to every tool provider by reference.  Tests build their own with fake
components instead of patching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portal_mcp.config.config_manager import ConfigManager
    from portal_mcp.executor import CommandExecutor
    from portal_mcp.interpreter import InterpreterLocator
    from portal_mcp.paths import PathResolver
    from portal_mcp.supervisor import ProcessSupervisor


@dataclass
class ResolvedPaths:
    """Paths discovered (or supplied) so far.  Every field starts empty and is filled lazily."""

    godot_path: str | None = None
    sdk_root: str | None = None
    project_path: str | None = None
    export_data_path: str | None = None
    python_command: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "godotPath": self.godot_path,
            "sdkRoot": self.sdk_root,
            "projectPath": self.project_path,
            "fbExportDataPath": self.export_data_path,
            "pythonCommand": self.python_command,
        }


@dataclass
class EnvironmentContext:
    config: ConfigManager
    paths: ResolvedPaths
    resolver: PathResolver
    locator: InterpreterLocator
    executor: CommandExecutor
    supervisor: ProcessSupervisor

    @classmethod
    def create(cls, config: ConfigManager | None = None) -> EnvironmentContext:
        """Wire up the default components around *config*.

        Values from the configuration file (or command-line flags applied to
        it) count as explicitly supplied and are seeded before any discovery.
        """
        from portal_mcp.config.config_manager import ConfigManager
        from portal_mcp.executor import CommandExecutor
        from portal_mcp.interpreter import InterpreterLocator
        from portal_mcp.paths import PathResolver
        from portal_mcp.supervisor import ProcessSupervisor

        if config is None:
            config = ConfigManager()

        paths = ResolvedPaths()
        resolver = PathResolver(config, paths)
        resolver.seed_from_config()
        locator = InterpreterLocator(config, paths)
        executor = CommandExecutor(config, resolver, locator)
        supervisor = ProcessSupervisor()
        return cls(
            config=config,
            paths=paths,
            resolver=resolver,
            locator=locator,
            executor=executor,
            supervisor=supervisor,
        )

    async def cleanup(self) -> None:
        """Release everything that outlives a single operation."""
        await self.supervisor.cleanup()


def default_operations_script() -> Path:
    """Location of the bundled ``godot_operations.gd``."""
    return Path(__file__).resolve().parent / "scripts" / "godot_operations.gd"

"""Command execution - shell quoting, operations-script runs, interpreter runs.

Godot operations go through the shell so that the JSON parameter blob is
passed exactly as one quoted argument; SDK converter scripts are spawned
directly with an argument vector.  Both return a :class:`CommandResult`
whatever the exit code; callers decide what counts as failure.
"""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
import sys

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from portal_mcp.errors import ExternalScriptError, PortalMcpError
from portal_mcp.mcp_utils.debug_logger import DebugLogger
from portal_mcp.registry import to_external_form

if TYPE_CHECKING:
    from portal_mcp.config.config_manager import ConfigManager
    from portal_mcp.interpreter import InterpreterLocator
    from portal_mcp.paths import PathResolver

logger = logging.getLogger(__name__)

# Substring the operations script writes to stderr when an operation fails.
FAILURE_MARKER = "Failed to"


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    exit_code: int = 0

    @property
    def failed(self) -> bool:
        return FAILURE_MARKER in self.stderr


def run_async(coro: Any) -> Any:
    """Run an async coroutine."""
    return asyncio.run(coro)


def handle_command_error(error: BaseException) -> None:
    """Write a user-friendly error (and any remediation hints) to stderr."""
    if isinstance(error, PortalMcpError):
        sys.stderr.write(f"Error: {error.message}\n")
        for suggestion in error.suggestions:
            sys.stderr.write(f"  - {suggestion}\n")
        return
    if isinstance(error, asyncio.exceptions.CancelledError):
        sys.stderr.write("Error: operation cancelled\n")
        return
    sys.stderr.write(f"Error: {error}\n")


# ---------------------------------------------------------------------------
# Shell quoting
# ---------------------------------------------------------------------------


def _is_windows() -> bool:
    return sys.platform == "win32"


def quote_shell_argument(text: str, windows: bool | None = None) -> str:
    """Quote *text* so the platform shell passes it through as a single argument.

    POSIX shells: wrap in single quotes; an embedded ``'`` closes the quote,
    emits an escaped quote and reopens (``'\\''``).  ``cmd.exe``: wrap in
    double quotes and backslash-escape embedded double quotes.
    """
    if windows is None:
        windows = _is_windows()
    if windows:
        return '"' + text.replace('"', '\\"') + '"'
    return "'" + text.replace("'", "'\\''") + "'"


def build_operation_command(
    godot_path: str,
    project_path: str,
    script_path: str,
    operation: str,
    params_json: str,
    debug: bool = True,
    windows: bool | None = None,
) -> str:
    """Build the shell command line that runs one operations-script operation."""
    parts = [
        quote_shell_argument(godot_path, windows),
        "--headless",
        "--path",
        quote_shell_argument(project_path, windows),
        "--script",
        quote_shell_argument(script_path, windows),
        operation,
        quote_shell_argument(params_json, windows),
    ]
    if debug:
        parts.append("--debug-godot")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Process helpers
# ---------------------------------------------------------------------------


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


async def probe_version(command: str, timeout: float = 10.0) -> str | None:
    """Run ``<command> --version``; return its stripped output, or None if it failed.

    A missing binary, a non-zero exit code, and a timeout all count as failure.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            "--version",
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        DebugLogger.debug_with_exception(None, f"Version probe could not start {command}", e)
        return None

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        DebugLogger.debug(None, f"Version probe timed out after {timeout}s: {command}")
        proc.kill()
        await proc.wait()
        return None

    if proc.returncode != 0:
        DebugLogger.debug(None, f"Version probe exited with {proc.returncode}: {command}")
        return None
    # Older interpreters print their version on stderr.
    return (_decode(out) or _decode(err)).strip()


def launch_detached(argv: list[str]) -> int:
    """Start *argv* without supervising it and return its pid."""
    kwargs: dict[str, Any] = {}
    if _is_windows():
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    DebugLogger.debug_command(None, argv)
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            **kwargs,
        )
    except OSError as e:
        raise ExternalScriptError(f"Failed to launch {argv[0]}: {e}") from e
    return proc.pid


class CommandExecutor:
    """Runs the bundled operations script and the SDK converter scripts."""

    def __init__(
        self,
        config: ConfigManager,
        resolver: PathResolver,
        locator: InterpreterLocator,
        operations_script: Path | None = None,
    ) -> None:
        from portal_mcp.context import default_operations_script

        self.config = config
        self.resolver = resolver
        self.locator = locator
        self.operations_script: Path = operations_script or default_operations_script()

    async def run_tool_script(self, operation: str, params: dict[str, Any], project_path: str) -> CommandResult:
        """Run ``godot --headless --script godot_operations.gd <operation> <json>`` in *project_path*."""
        godot_path = await self.resolver.resolve_godot()
        params_json = json.dumps(to_external_form(params))
        command = build_operation_command(
            godot_path,
            project_path,
            str(self.operations_script),
            operation,
            params_json,
            debug=self.config.is_godot_debug_flag(),
        )
        DebugLogger.debug_command(self, command)

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalScriptError(f"Failed to execute operation {operation}: {e}") from e

        out, err = await proc.communicate()
        result = CommandResult(_decode(out), _decode(err), proc.returncode if proc.returncode is not None else 0)
        DebugLogger.debug(self, f"Operation {operation} exited with {result.exit_code}")
        return result

    async def run_interpreter_script(self, script_path: str, args: list[str], cwd: str | None = None) -> CommandResult:
        """Run a Python script from the SDK with the located interpreter."""
        python = await self.locator.ensure_interpreter()
        DebugLogger.debug_command(self, [python, script_path, *args])
        try:
            proc = await asyncio.create_subprocess_exec(
                python,
                script_path,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalScriptError(f"Failed to launch {python} {script_path}: {e}") from e

        out, err = await proc.communicate()
        return CommandResult(_decode(out), _decode(err), proc.returncode if proc.returncode is not None else 0)

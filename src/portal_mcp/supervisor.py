"""Supervision of the single Godot process started by run-project.

At most one child runs at a time.  Its stdout/stderr lines are buffered as
they arrive.  When the child exits on its own, the buffers are kept for
exactly one more read and then released.
"""

from __future__ import annotations

import asyncio
import logging

from dataclasses import dataclass, field
from enum import Enum

from portal_mcp.errors import ExternalScriptError, NoActiveProcessError
from portal_mcp.mcp_utils.debug_logger import DebugLogger
from portal_mcp.models import DebugOutput

logger = logging.getLogger(__name__)

# Generous line limit: Godot prints long resource dumps in debug mode.
_STREAM_LIMIT = 1024 * 1024
_DRAIN_TIMEOUT_SECONDS = 5.0


class SupervisorState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class ActiveChildProcess:
    process: asyncio.subprocess.Process
    stdout_lines: list[str] = field(default_factory=list)
    stderr_lines: list[str] = field(default_factory=list)
    readers: list[asyncio.Task] = field(default_factory=list)
    watcher: asyncio.Task | None = None

    def snapshot(self) -> DebugOutput:
        return DebugOutput(output=list(self.stdout_lines), errors=list(self.stderr_lines))


class ProcessSupervisor:
    def __init__(self) -> None:
        self.state: SupervisorState = SupervisorState.IDLE
        self._active: ActiveChildProcess | None = None
        self._retained: ActiveChildProcess | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self.state is SupervisorState.RUNNING

    async def start(self, godot_path: str, project_path: str, scene: str | None = None) -> int:
        """Spawn ``<godot> -d --path <project> [scene]``, replacing any running child."""
        async with self._lock:
            if self._active is not None:
                logger.info("Killing existing Godot process before starting a new one")
                await self._terminate(self._active)
                self._active = None
            self._retained = None
            self.state = SupervisorState.IDLE

            argv = [godot_path, "-d", "--path", project_path]
            if scene:
                argv.append(scene)
            DebugLogger.debug_command(self, argv)

            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    limit=_STREAM_LIMIT,
                )
            except OSError as e:
                raise ExternalScriptError(f"Failed to start Godot project: {e}") from e

            child = ActiveChildProcess(process=process)
            child.readers = [
                asyncio.create_task(self._pump(process.stdout, child.stdout_lines, "stdout")),
                asyncio.create_task(self._pump(process.stderr, child.stderr_lines, "stderr")),
            ]
            child.watcher = asyncio.create_task(self._watch(child))
            self._active = child
            self.state = SupervisorState.RUNNING
            logger.info(f"Godot project started (pid {process.pid})")
            return process.pid

    def poll(self) -> DebugOutput:
        """Current output of the running child, or the final output of the one that just exited."""
        if self._active is not None:
            return self._active.snapshot()
        if self._retained is not None:
            retained, self._retained = self._retained, None
            return retained.snapshot()
        raise NoActiveProcessError("No active Godot process.")

    async def stop(self) -> DebugOutput:
        """Kill the running child and return everything it printed."""
        async with self._lock:
            child = self._active
            if child is None:
                raise NoActiveProcessError("No active Godot process to stop.")
            await self._terminate(child)
            self._active = None
            self._retained = None
            self.state = SupervisorState.IDLE
            logger.info("Godot project stopped")
            return child.snapshot()

    async def cleanup(self) -> None:
        """Kill any running child without raising.  Called on shutdown."""
        async with self._lock:
            child = self._active
            self._active = None
            self._retained = None
            self.state = SupervisorState.IDLE
            if child is None:
                return
            try:
                await self._terminate(child)
            except (OSError, RuntimeError) as e:
                logger.warning(f"Failed to terminate Godot process {child.process.pid}: {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _pump(self, stream: asyncio.StreamReader | None, lines: list[str], name: str) -> None:
        if stream is None:
            return
        while True:
            try:
                raw = await stream.readline()
            except ValueError as e:
                # Line longer than the stream limit; the reader already discarded it.
                logger.warning(f"Dropped an oversized line from Godot {name}: {e}")
                continue
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(line)
            DebugLogger.debug_process_output(self, name, line)

    async def _drain(self, child: ActiveChildProcess) -> None:
        _, pending = await asyncio.wait(child.readers, timeout=_DRAIN_TIMEOUT_SECONDS)
        for task in pending:
            task.cancel()

    async def _watch(self, child: ActiveChildProcess) -> None:
        returncode = await child.process.wait()
        await self._drain(child)
        logger.info(f"Godot process {child.process.pid} exited with code {returncode}")
        if self._active is child:
            self._active = None
            self._retained = child
            self.state = SupervisorState.IDLE

    async def _terminate(self, child: ActiveChildProcess) -> None:
        if child.process.returncode is None:
            try:
                child.process.kill()
            except ProcessLookupError:
                pass
        await child.process.wait()
        await self._drain(child)
        if child.watcher is not None:
            await asyncio.gather(child.watcher, return_exceptions=True)

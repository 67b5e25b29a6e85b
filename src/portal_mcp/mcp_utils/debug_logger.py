"""Verbose logging toggle for the Portal MCP server.

Off by default; switched on by ``DEBUG=true``, the ``debug`` key of the
configuration file, or ``--verbose``.  Messages are tagged with the class of
the object that emitted them and go through stdlib logging, which the entry
points route to stderr (stdout belongs to the stdio transport).
"""

from __future__ import annotations

import contextlib
import logging
import time

from typing import Any, Iterator, Sequence

logger = logging.getLogger(__name__)


def _origin(source: Any) -> str:
    if source is None:
        return "portal-mcp"
    return source.__name__ if isinstance(source, type) else source.__class__.__name__


class DebugLogger:
    """Static switch plus helpers for the server's verbose output."""

    _debug_enabled: bool = False

    @staticmethod
    def set_debug_enabled(enabled: bool) -> None:
        DebugLogger._debug_enabled = bool(enabled)

    @staticmethod
    def is_debug_enabled() -> bool:
        return DebugLogger._debug_enabled

    @staticmethod
    def debug(source: Any, message: str) -> None:
        if DebugLogger._debug_enabled:
            logger.info(f"[DEBUG {_origin(source)}] {message}")

    @staticmethod
    def debug_with_exception(source: Any, message: str, exception: BaseException) -> None:
        if DebugLogger._debug_enabled:
            logger.info(f"[DEBUG {_origin(source)}] {message}: {exception.__class__.__name__}: {exception}")

    @staticmethod
    def debug_command(source: Any, command: str | Sequence[str]) -> None:
        """Log a command line about to be spawned, shell string or argv."""
        if DebugLogger._debug_enabled:
            text = command if isinstance(command, str) else " ".join(str(part) for part in command)
            logger.info(f"[DEBUG-CMD {_origin(source)}] {text}")

    @staticmethod
    def debug_process_output(source: Any, stream: str, line: str) -> None:
        """Echo one line of supervised Godot output."""
        if DebugLogger._debug_enabled:
            logger.info(f"[DEBUG-PROC {stream}] {line}")

    @staticmethod
    def debug_tool_execution(source: Any, tool_name: str, status: str, details: str | None = None) -> None:
        """Trace one operation through dispatch.

        Args:
            source: The emitting object (provider, manager, or server)
            tool_name: Catalog name of the operation
            status: START, DISPATCH, SUCCESS, or ERROR
            details: Extra text appended after the status
        """
        if DebugLogger._debug_enabled:
            message = f"[DEBUG-TOOL {_origin(source)}] {tool_name} - {status}"
            if details:
                message += f": {details}"
            logger.info(message)

    @staticmethod
    @contextlib.contextmanager
    def time_operation(source: Any, operation_name: str) -> Iterator[None]:
        """Trace START/SUCCESS/ERROR around a block and log its duration in ms."""
        DebugLogger.debug_tool_execution(source, operation_name, "START")
        started = time.monotonic()
        status = "ERROR"
        try:
            yield
            status = "SUCCESS"
        finally:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            DebugLogger.debug_tool_execution(source, operation_name, status, f"{elapsed_ms}ms")

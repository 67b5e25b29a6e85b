"""Locate a Python interpreter for the Portal SDK converter scripts."""

from __future__ import annotations

import logging
import os

from typing import TYPE_CHECKING

from portal_mcp.errors import InterpreterNotFoundError
from portal_mcp.executor import probe_version
from portal_mcp.mcp_utils.debug_logger import DebugLogger

if TYPE_CHECKING:
    from portal_mcp.config.config_manager import ConfigManager
    from portal_mcp.context import ResolvedPaths

logger = logging.getLogger(__name__)

DEFAULT_INTERPRETERS = ("python3", "python")


class InterpreterLocator:
    def __init__(self, config: ConfigManager, resolved: ResolvedPaths) -> None:
        self.config = config
        self.resolved = resolved

    def candidates(self) -> list[str]:
        """Configured command, ``PYTHON_PATH``, then the defaults; duplicates removed, order kept."""
        ordered: list[str] = []
        for candidate in (
            self.config.get_python_path(),
            os.environ.get("PYTHON_PATH", "").strip(),
            *DEFAULT_INTERPRETERS,
        ):
            if candidate and candidate not in ordered:
                ordered.append(candidate)
        return ordered

    async def _is_working(self, command: str) -> bool:
        return await probe_version(command, self.config.get_version_probe_timeout_seconds()) is not None

    async def ensure_interpreter(self) -> str:
        """Return a working interpreter command, memoizing the first one found."""
        memoized = self.resolved.python_command
        if memoized and await self._is_working(memoized):
            return memoized

        for candidate in self.candidates():
            if await self._is_working(candidate):
                if candidate != memoized:
                    logger.info(f"Using Python interpreter: {candidate}")
                self.resolved.python_command = candidate
                return candidate
            DebugLogger.debug(self, f"Python candidate rejected: {candidate}")

        self.resolved.python_command = None
        raise InterpreterNotFoundError(
            "Unable to locate a Python interpreter. Set PYTHON_PATH or install Python 3.",
        )

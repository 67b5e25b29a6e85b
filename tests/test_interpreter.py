from __future__ import annotations

import sys

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from portal_mcp.errors import InterpreterNotFoundError
from tests.helpers import make_context


def test_candidate_order_and_deduplication(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PYTHON_PATH", "python3")
    ctx = make_context(python_path="/opt/py/bin/python")
    assert ctx.locator.candidates() == ["/opt/py/bin/python", "python3", "python"]


def test_defaults_only():
    assert make_context().locator.candidates() == ["python3", "python"]


@pytest.mark.asyncio
async def test_configured_interpreter_is_memoized():
    ctx = make_context(python_path=sys.executable)
    assert await ctx.locator.ensure_interpreter() == sys.executable
    assert ctx.paths.python_command == sys.executable


@pytest.mark.asyncio
async def test_broken_memoized_interpreter_is_replaced(tmp_path: Path):
    ctx = make_context(python_path=sys.executable)
    ctx.paths.python_command = str(tmp_path / "gone" / "python")
    assert await ctx.locator.ensure_interpreter() == sys.executable
    assert ctx.paths.python_command == sys.executable


@pytest.mark.asyncio
async def test_no_working_interpreter():
    ctx = make_context(python_path="/nonexistent/python")
    ctx.paths.python_command = "/nonexistent/python"
    with patch("portal_mcp.interpreter.probe_version", AsyncMock(return_value=None)):
        with pytest.raises(InterpreterNotFoundError, match="PYTHON_PATH"):
            await ctx.locator.ensure_interpreter()
    assert ctx.paths.python_command is None

from __future__ import annotations

import json

from typing import Any, ClassVar

import pytest

from mcp import types

from portal_mcp.errors import PortalMcpError, SdkNotFoundError
from portal_mcp.mcp_server.tool_providers import (
    ToolProvider,
    ToolProviderManager,
    create_error_response,
    create_success_response,
)
from portal_mcp.mcp_utils.schema_util import SchemaBuilder
from portal_mcp.registry import TOOLS
from tests.helpers import assert_error_envelope, make_context, make_manager, parse_single_text_content_json


class _EchoProvider(ToolProvider):
    """Claims get-tool-version and echoes the normalized arguments back."""

    HANDLERS: ClassVar[dict[str, str]] = {"gettoolversion": "_handle"}

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name="get-tool-version",
                description="routing test tool",
                inputSchema=SchemaBuilder().string_property("projectPath", "p").required("projectPath").build(),
            ),
        ]

    async def _handle(self, args: dict[str, Any]) -> types.CallToolResult:
        return create_success_response(args)


class _ExplodingProvider(_EchoProvider):
    async def _handle(self, args: dict[str, Any]) -> types.CallToolResult:
        raise RuntimeError("kaboom")


class TestEnvelopes:
    def test_success_text_is_passed_through(self):
        result = create_success_response("plain text")
        assert result.isError is False
        assert result.content[0].text == "plain text"

    def test_success_data_is_indented_json(self):
        result = create_success_response({"a": [1, 2]})
        assert result.content[0].text == json.dumps({"a": [1, 2]}, indent=2)

    def test_error_uses_exception_suggestions(self):
        message, solutions = assert_error_envelope(create_error_response(SdkNotFoundError("no sdk")))
        assert message == "no sdk"
        assert "PORTAL_SDK_PATH" in solutions

    def test_error_with_explicit_suggestions(self):
        _, solutions = assert_error_envelope(create_error_response("bad", ["first", "second"]))
        assert solutions == "Possible solutions:\n- first\n- second"

    def test_error_always_has_a_suggestion(self):
        _, solutions = assert_error_envelope(create_error_response("bad"))
        assert solutions == "Possible solutions:\n- " + PortalMcpError.default_suggestions[0]


class TestDispatch:
    def test_catalog_order(self):
        manager = make_manager(make_context())
        assert [tool.name for tool in manager.list_tools()] == TOOLS

    def test_every_schema_declares_required(self):
        manager = make_manager(make_context())
        for tool in manager.list_tools():
            assert tool.inputSchema["type"] == "object"
            assert isinstance(tool.inputSchema["required"], list)

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        manager = make_manager(make_context())
        _, solutions = assert_error_envelope(await manager.call_tool("no-such-tool", {}), "Unknown tool: no-such-tool")
        assert "tools/list" in solutions

    @pytest.mark.asyncio
    async def test_name_variants_and_snake_case_arguments(self):
        manager = ToolProviderManager(make_context())
        manager._register(_EchoProvider(manager.ctx))
        for name in ("get-tool-version", "GET_TOOL_VERSION", "get_godot_version"):
            payload = parse_single_text_content_json(await manager.call_tool(name, {"project_path": "/p", "extra": 1}))
            assert payload == {"projectPath": "/p", "extra": 1}

    @pytest.mark.asyncio
    async def test_required_parameter_check(self):
        manager = ToolProviderManager(make_context())
        manager._register(_EchoProvider(manager.ctx))
        assert_error_envelope(await manager.call_tool("get-tool-version", {"projectPath": "  "}), "Project path is required")
        assert_error_envelope(await manager.call_tool("get-tool-version", None), "Project path is required")

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_envelope(self):
        manager = ToolProviderManager(make_context())
        manager._register(_ExplodingProvider(manager.ctx))
        message, _ = assert_error_envelope(await manager.call_tool("get-tool-version", {"projectPath": "/p"}))
        assert message == "Failed to run get-tool-version: kaboom"

    @pytest.mark.asyncio
    async def test_cleanup_reaches_supervisor(self):
        manager = make_manager(make_context())
        await manager.cleanup()
        assert not manager.ctx.supervisor.is_running

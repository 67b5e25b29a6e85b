"""Base ToolProvider with centralized normalization, dispatch, and manager.

Every operation goes through the same pipeline, implemented once here:

  1. MCP Server -> ToolProviderManager.call_tool(name, arguments)
  2. Manager resolves ``name`` (any casing/separator, legacy aliases) and
     looks up the owning ToolProvider.
  3. ToolProvider.call_tool() renames snake_case keys to camelCase, checks
     required fields and path traversal, dispatches to the handler, and turns
     every failure into an error envelope.

Handlers read camelCase keys with the ``self._get*`` helpers.
"""

from __future__ import annotations

import json as _json
import logging

from typing import TYPE_CHECKING, Any

from mcp import types

from portal_mcp.errors import (
    ExternalScriptError,
    InvalidPathError,
    PortalMcpError,
    ProjectNotFoundError,
)
from portal_mcp.mcp_utils.debug_logger import DebugLogger
from portal_mcp.paths import has_parent_segment, is_valid_project
from portal_mcp.registry import PATH_PARAMETERS, TOOLS, normalize_identifier, resolve_tool_name, to_internal_form, to_snake_case

if TYPE_CHECKING:
    from portal_mcp.context import EnvironmentContext

logger = logging.getLogger(__name__)

n = normalize_identifier  # short alias used throughout providers


# ---------------------------------------------------------------------------
# Response helpers (canonical location)
# ---------------------------------------------------------------------------


def create_success_response(data: Any) -> types.CallToolResult:
    """Success envelope: plain text as-is, anything else as indented JSON."""
    text = data if isinstance(data, str) else _json.dumps(data, indent=2)
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)


def create_error_response(error: str | Exception, suggestions: list[str] | None = None) -> types.CallToolResult:
    """Error envelope: the message, then a ``Possible solutions`` block."""
    if isinstance(error, PortalMcpError):
        message = error.message
        suggestions = suggestions or error.suggestions
    else:
        message = str(error) if isinstance(error, Exception) else error
    if not suggestions:
        suggestions = list(PortalMcpError.default_suggestions)
    solutions = "Possible solutions:\n" + "\n".join(f"- {s}" for s in suggestions)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=message),
            types.TextContent(type="text", text=solutions),
        ],
        isError=True,
    )


# ---------------------------------------------------------------------------
# Value coercion helpers
# ---------------------------------------------------------------------------

_TRUTHY = frozenset({"true", "1", "yes", "on", "enabled"})


def _coerce_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in _TRUTHY
    return bool(v)


def _coerce_list(v: Any) -> list:
    """Coerce to list.  Handles: list, tuple, comma-separated string, scalar."""
    if isinstance(v, list):
        return v
    if isinstance(v, tuple):
        return list(v)
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return [v]


def _label(key: str) -> str:
    """``projectPath`` -> ``project path`` for error messages."""
    return to_snake_case(key).replace("_", " ")


# ---------------------------------------------------------------------------
# Base ToolProvider
# ---------------------------------------------------------------------------


class ToolProvider:
    """Base class for MCP tool providers.

    Subclasses populate **HANDLERS**: ``{normalized_tool_name: "method_name"}``
    and advertise their tools from ``list_tools()``.  Required parameters are
    read from each tool's ``inputSchema``.
    """

    HANDLERS: dict[str, str] = {}

    def __init__(self, ctx: EnvironmentContext) -> None:
        self.ctx: EnvironmentContext = ctx
        self._manager: ToolProviderManager | None = None  # set by manager._register
        self._required_cache: dict[str, list[str]] | None = None

    def list_tools(self) -> list[types.Tool]:
        return []

    def _required_params(self, norm_name: str) -> list[str]:
        if self._required_cache is None:
            self._required_cache = {n(tool.name): list(tool.inputSchema.get("required", [])) for tool in self.list_tools()}
        return self._required_cache.get(norm_name, [])

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        """Normalize args, validate, dispatch to handler, convert failures to envelopes."""
        resolved_name = resolve_tool_name(name) or name
        norm_name = n(resolved_name)

        handler_method_name = self.HANDLERS.get(norm_name)
        if handler_method_name is None:
            raise NotImplementedError(f"Unknown tool: {name}")

        handler = getattr(self, handler_method_name)
        args = to_internal_form(arguments or {})

        try:
            self._check_required(norm_name, args)
            self._check_paths(args)
            with DebugLogger.time_operation(self, resolved_name):
                return await handler(args)
        except PortalMcpError as e:
            logger.warning(f"Tool {resolved_name} failed: {e.message}")
            return create_error_response(e)
        except Exception as e:
            logger.error(f"Tool {resolved_name} error: {e.__class__.__name__}: {e}")
            return create_error_response(
                f"Failed to run {resolved_name}: {e}",
                ["Check the server log (stderr) for details", "Enable DEBUG=true for verbose server logging"],
            )

    def _check_required(self, norm_name: str, args: dict[str, Any]) -> None:
        for key in self._required_params(norm_name):
            value = args.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                if key in PATH_PARAMETERS:
                    raise InvalidPathError(f"{_label(key).capitalize()} is required")
                raise PortalMcpError(f"{_label(key).capitalize()} is required", [f"Provide the {to_snake_case(key)} parameter"])

    @staticmethod
    def _check_paths(args: dict[str, Any]) -> None:
        for key in PATH_PARAMETERS:
            value = args.get(key)
            if isinstance(value, str) and has_parent_segment(value):
                raise InvalidPathError(f"Invalid {_label(key)}: '{value}' contains a '..' segment")

    # ------------------------------------------------------------------
    # Argument extraction helpers (on already-normalized dicts)
    # ------------------------------------------------------------------

    @staticmethod
    def _get(args: dict[str, Any], *keys: str, default: Any = None) -> Any:
        """First non-None value matching any *keys*."""
        for k in keys:
            v = args.get(k)
            if v is not None:
                return v
        return default

    @staticmethod
    def _get_str(args: dict[str, Any], *keys: str, default: str = "") -> str:
        for k in keys:
            v = args.get(k)
            if v is not None and str(v).strip():
                return str(v)
        return default

    @staticmethod
    def _get_bool(args: dict[str, Any], *keys: str, default: bool = False) -> bool:
        for k in keys:
            v = args.get(k)
            if v is not None:
                return _coerce_bool(v)
        return default

    @staticmethod
    def _get_list(args: dict[str, Any], *keys: str) -> list | None:
        for k in keys:
            v = args.get(k)
            if v is not None:
                return _coerce_list(v)
        return None

    @staticmethod
    def _require_str(args: dict[str, Any], *keys: str, name: str = "") -> str:
        for k in keys:
            v = args.get(k)
            if v is not None and str(v).strip():
                return str(v)
        label = name or " or ".join(keys)
        raise PortalMcpError(f"Required parameter missing or empty: {label}", [f"Provide {label}"])

    # ------------------------------------------------------------------
    # Project and operation helpers
    # ------------------------------------------------------------------

    def _resolve_project(self, args: dict[str, Any]) -> str:
        """Explicit projectPath, else the SDK's project; must hold project.godot."""
        explicit = self._get_str(args, "projectPath") or None
        project = self.ctx.resolver.resolve_project_path(explicit)
        if not project:
            raise ProjectNotFoundError(
                "Project path is required",
                [
                    "Provide a valid path to a Godot project directory",
                    "Ensure the Battlefield Portal SDK is installed and detectable (PORTAL_SDK_PATH)",
                ],
            )
        if not is_valid_project(project):
            raise ProjectNotFoundError(f"Not a valid Godot project: {project}")
        return project

    async def _run_operation(
        self,
        operation: str,
        params: dict[str, Any],
        project: str,
        success_text: str,
        failure_text: str,
        suggestions: list[str] | None = None,
    ) -> types.CallToolResult:
        result = await self.ctx.executor.run_tool_script(operation, params, project)
        if result.failed:
            raise ExternalScriptError(f"{failure_text}: {result.stderr.strip()}", suggestions)
        return create_success_response(f"{success_text}\n\nOutput: {result.stdout.strip()}")

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    async def cleanup(self) -> None:
        pass


# ---------------------------------------------------------------------------
# ToolProviderManager - routes tool calls to the correct provider
# ---------------------------------------------------------------------------


class ToolProviderManager:
    """Routes MCP tool calls to the correct ToolProvider by normalized name."""

    def __init__(self, ctx: EnvironmentContext) -> None:
        self.ctx: EnvironmentContext = ctx
        self.providers: list[ToolProvider] = []
        self._tool_map: dict[str, ToolProvider] = {}

    def _register(self, provider: ToolProvider) -> None:
        provider._manager = self
        self.providers.append(provider)
        for tool in provider.list_tools():
            self._tool_map[n(tool.name)] = provider

    def register_all_providers(self) -> None:
        """Import and register every concrete provider."""
        from portal_mcp.mcp_server.providers import (
            EditorToolProvider,
            ProjectToolProvider,
            SceneToolProvider,
            SdkToolProvider,
            UidToolProvider,
        )

        for cls in (
            EditorToolProvider,
            ProjectToolProvider,
            SceneToolProvider,
            UidToolProvider,
            SdkToolProvider,
        ):
            self._register(cls(self.ctx))

    def list_tools(self) -> list[types.Tool]:
        """All tools, in catalog order."""
        by_norm: dict[str, types.Tool] = {}
        for provider in self.providers:
            for tool in provider.list_tools():
                by_norm.setdefault(n(tool.name), tool)
        return [by_norm[n(name)] for name in TOOLS if n(name) in by_norm]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        resolved_name = resolve_tool_name(name)
        provider = self._tool_map.get(n(resolved_name)) if resolved_name else None
        if provider is None:
            return create_error_response(
                PortalMcpError(f"Unknown tool: {name}", ["Use tools/list to see the available tools"]),
            )
        DebugLogger.debug_tool_execution(self, resolved_name, "DISPATCH", f"arguments={sorted((arguments or {}).keys())}")
        return await provider.call_tool(resolved_name, arguments)

    async def cleanup(self) -> None:
        for provider in self.providers:
            try:
                await provider.cleanup()
            except Exception as e:
                logger.warning(f"Failed to clean up {provider.__class__.__name__}: {e}")
        await self.ctx.cleanup()

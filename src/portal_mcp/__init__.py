"""Portal MCP - Model Context Protocol server for Godot and the Battlefield Portal SDK.

Lets an MCP client launch and run Godot projects, edit scenes through a
bundled headless GDScript, manage resource UIDs, and drive the Portal SDK's
level export and project generation scripts.
"""

__version__ = "0.2.0"

from portal_mcp.registry import (  # noqa: E402
    LEGACY_TOOL_NAMES,
    PARAMETER_MAPPINGS,
    TOOLS,
    normalize_identifier,
    resolve_tool_name,
    to_external_form,
    to_internal_form,
)

__all__ = [
    "LEGACY_TOOL_NAMES",
    "PARAMETER_MAPPINGS",
    "TOOLS",
    "__version__",
    "normalize_identifier",
    "resolve_tool_name",
    "to_external_form",
    "to_internal_form",
]

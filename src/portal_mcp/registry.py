"""Tool registry - catalog names, aliases, and parameter-name normalization.

Single source of truth for the operation names the server advertises, the
legacy names it still accepts, and the two parameter naming conventions:

* callers may send ``snake_case`` or ``camelCase`` keys; handlers read
  ``camelCase`` (the *internal* form),
* the bundled Godot operations script reads ``snake_case`` (the *external*
  form).

The forward table is declared once below; its inverse is derived at import
time and neither is mutated afterwards.
"""

from __future__ import annotations

import re

from types import MappingProxyType
from typing import Any, Mapping

# ---------------------------------------------------------------------------
# MCP tool names (kebab-case, as advertised)
# ---------------------------------------------------------------------------
TOOLS: list[str] = [
    "launch-editor",
    "run-project",
    "get-debug-output",
    "stop-project",
    "get-tool-version",
    "list-projects",
    "get-project-info",
    "create-scene",
    "add-node",
    "load-sprite",
    "export-mesh-library",
    "save-scene",
    "get-resource-id",
    "update-resource-ids",
    "get-sdk-info",
    "list-sdk-levels",
    "export-sdk-level",
    "regenerate-sdk-project",
]

# Names used by earlier releases of the server. Accepted, never advertised.
LEGACY_TOOL_NAMES: dict[str, str] = {
    "get_godot_version": "get-tool-version",
    "get_uid": "get-resource-id",
    "update_project_uids": "update-resource-ids",
    "get_portal_sdk_info": "get-sdk-info",
    "list_portal_levels": "list-sdk-levels",
    "export_portal_level": "export-sdk-level",
    "create_portal_project": "regenerate-sdk-project",
}


# Parameters that name filesystem locations and must pass the traversal check.
PATH_PARAMETERS: frozenset[str] = frozenset(
    {
        "projectPath",
        "scenePath",
        "nodePath",
        "texturePath",
        "outputPath",
        "newPath",
        "filePath",
        "directory",
        "scene",
        "outputDir",
        "fbExportDataPath",
    },
)


# ---------------------------------------------------------------------------
# ParameterNormalizer
# ---------------------------------------------------------------------------

PARAMETER_MAPPINGS: Mapping[str, str] = MappingProxyType(
    {
        "project_path": "projectPath",
        "scene_path": "scenePath",
        "root_node_type": "rootNodeType",
        "parent_node_path": "parentNodePath",
        "node_type": "nodeType",
        "node_name": "nodeName",
        "texture_path": "texturePath",
        "node_path": "nodePath",
        "output_path": "outputPath",
        "mesh_item_names": "meshItemNames",
        "new_path": "newPath",
        "file_path": "filePath",
        "directory": "directory",
        "recursive": "recursive",
        "scene": "scene",
        "properties": "properties",
        "output_dir": "outputDir",
        "fb_export_data_path": "fbExportDataPath",
        "overwrite_levels": "overwriteLevels",
    },
)

REVERSE_PARAMETER_MAPPINGS: Mapping[str, str] = MappingProxyType({camel: snake for snake, camel in PARAMETER_MAPPINGS.items()})

_UPPER = re.compile(r"[A-Z]")


def transliterate_camel_key(key: str) -> str:
    """Fallback for keys missing from the table: ``fooBar`` -> ``foo_bar``.

    Lossy: ``fooBar`` and ``foo_bar`` (or ``FooBar`` and ``_foo_bar``) can
    collide. When two keys in one mapping collide, the later one wins.
    """
    return _UPPER.sub(lambda m: f"_{m.group(0).lower()}", key)


def to_internal_form(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Rename registered snake_case keys to camelCase, recursing into nested dicts."""
    if not params:
        return {}
    result: dict[str, Any] = {}
    for key, value in params.items():
        normalized_key = PARAMETER_MAPPINGS.get(key, key)
        if isinstance(value, Mapping):
            value = to_internal_form(value)
        result[normalized_key] = value
    return result


def to_external_form(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Rename camelCase keys to snake_case for the operations script."""
    if not params:
        return {}
    result: dict[str, Any] = {}
    for key, value in params.items():
        snake_key = REVERSE_PARAMETER_MAPPINGS.get(key)
        if snake_key is None:
            snake_key = transliterate_camel_key(key)
        if isinstance(value, Mapping):
            value = to_external_form(value)
        result[snake_key] = value
    return result


# ---------------------------------------------------------------------------
# Tool name normalization
# ---------------------------------------------------------------------------


def normalize_identifier(s: str) -> str:
    """Normalize an identifier for case-insensitive, separator-insensitive matching.

    Examples::

        normalize_identifier("get-debug-output")  # -> "getdebugoutput"
        normalize_identifier("Get_Debug_Output")  # -> "getdebugoutput"
        normalize_identifier("GET DEBUG OUTPUT")  # -> "getdebugoutput"
    """
    return re.sub(r"[^a-z]", "", s.lower().strip())


TOOL_ALIASES: dict[str, str] = {normalize_identifier(alias): target for alias, target in LEGACY_TOOL_NAMES.items()}

_TOOLS_BY_NORM: dict[str, str] = {normalize_identifier(tool): tool for tool in TOOLS}


def resolve_tool_name(tool_name: str) -> str | None:
    """Resolve any casing/separator variant or legacy alias to the canonical tool name."""
    norm = normalize_identifier(tool_name)
    if not norm:
        return None
    direct = _TOOLS_BY_NORM.get(norm)
    if direct is not None:
        return direct
    return TOOL_ALIASES.get(norm)


def to_snake_case(s: str) -> str:
    """Convert any identifier format to snake_case.

    - kebab-case:   ``"get-debug-output"``  ->  ``"get_debug_output"``
    - camelCase:    ``"projectPath"``       ->  ``"project_path"``
    """
    s = s.replace("-", "_").replace(" ", "_")
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s)
    return s.lower()

"""JSON schema helpers for advertised tool inputs."""

from __future__ import annotations

from typing import Any


class SchemaBuilder:
    """Fluent builder for a tool's ``inputSchema``.

    Example::

        SchemaBuilder().string_property("projectPath", "Path to the project").required("projectPath").build()
    """

    def __init__(self) -> None:
        self._properties: dict[str, Any] = {}
        self._required: list[str] = []

    def string_property(self, name: str, description: str, default: str | None = None) -> SchemaBuilder:
        prop: dict[str, Any] = {"type": "string", "description": description}
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def boolean_property(self, name: str, description: str, default: bool | None = None) -> SchemaBuilder:
        prop: dict[str, Any] = {"type": "boolean", "description": description}
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def array_property(self, name: str, description: str, items: dict[str, Any] | None = None) -> SchemaBuilder:
        prop: dict[str, Any] = {"type": "array", "description": description}
        if items:
            prop["items"] = items
        self._properties[name] = prop
        return self

    def object_property(self, name: str, description: str) -> SchemaBuilder:
        self._properties[name] = {"type": "object", "description": description}
        return self

    def required(self, *names: str) -> SchemaBuilder:
        self._required.extend(names)
        return self

    def build(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": dict(self._properties),
            "required": list(self._required),
        }


def empty_schema() -> dict[str, Any]:
    return SchemaBuilder().build()

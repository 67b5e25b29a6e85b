"""MCP utilities for the Portal MCP server."""

from .debug_logger import DebugLogger
from .schema_util import SchemaBuilder, empty_schema

__all__ = [
    "DebugLogger",
    "SchemaBuilder",
    "empty_schema",
]

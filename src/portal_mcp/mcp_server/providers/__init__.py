"""MCP Tool Providers - one provider per area of the tool catalog."""

from .editor import EditorToolProvider
from .project import ProjectToolProvider
from .scene import SceneToolProvider
from .uid import UidToolProvider
from .sdk import SdkToolProvider

__all__ = [
    "EditorToolProvider",
    "ProjectToolProvider",
    "SceneToolProvider",
    "SdkToolProvider",
    "UidToolProvider",
]

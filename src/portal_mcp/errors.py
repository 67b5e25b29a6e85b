"""Error taxonomy for the Portal MCP server.

Every operation failure is one of these.  Each class carries a default list of
remediation hints; callers may replace or extend them.  Providers turn them
into error envelopes, so none of them ever reaches the MCP transport.
"""

from __future__ import annotations


class PortalMcpError(Exception):
    """Base class for failures reported back to the MCP client."""

    default_suggestions: tuple[str, ...] = ("Check the server log (stderr) for details",)

    def __init__(self, message: str, suggestions: list[str] | None = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.suggestions: list[str] = list(suggestions) if suggestions else list(self.default_suggestions)

    def __str__(self) -> str:
        return self.message


class ToolNotFoundError(PortalMcpError):
    """No working Godot executable could be located."""

    default_suggestions = (
        "Set the GODOT_PATH environment variable to the Godot executable",
        "Install Godot 4.x and make sure `godot` is on PATH",
        "Pass --godot-path when starting the server",
    )


class InterpreterNotFoundError(PortalMcpError):
    """No working Python interpreter for the SDK converter scripts."""

    default_suggestions = (
        "Install Python 3 and make sure `python3` or `python` is on PATH",
        "Set the PYTHON_PATH environment variable to the interpreter",
    )


class InvalidPathError(PortalMcpError):
    """A path argument is missing, malformed, or escapes its base directory."""

    default_suggestions = (
        "Provide a valid path without '..' segments",
        "Use paths relative to the project directory, or absolute paths",
    )


class ProjectNotFoundError(PortalMcpError):
    """The project directory has no project.godot manifest."""

    default_suggestions = (
        "Ensure the path points to a directory containing project.godot",
        "Use list-projects to find valid Godot projects",
        "Set PORTAL_PROJECT_PATH or PORTAL_SDK_PATH so the project can be discovered",
    )


class SdkNotFoundError(PortalMcpError):
    """The Portal SDK root, export data, or a converter script is missing."""

    default_suggestions = (
        "Set PORTAL_SDK_PATH to the Portal SDK root (the directory containing SDK/)",
        "Run the server from inside the Portal SDK checkout",
        "Use get-sdk-info to see which paths were resolved",
    )


class NoActiveProcessError(PortalMcpError):
    """A supervised-process operation was requested while nothing is running."""

    default_suggestions = ("Use run-project to start a Godot project first",)


class ExternalScriptError(PortalMcpError):
    """An external command could not be launched or reported failure."""

    default_suggestions = (
        "Check that the file paths are correct",
        "Run the command manually to see its full output",
        "Enable DEBUG=true for verbose server logging",
    )


class UnsupportedVersionError(PortalMcpError):
    """The installed Godot is too old for the requested operation."""

    default_suggestions = (
        "Upgrade to Godot 4.4 or later",
        "Use an alternative operation that does not depend on resource UIDs",
    )

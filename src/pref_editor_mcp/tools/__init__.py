"""
MCP tools for the Pref-Editor MCP Server.

Modules:
- common: devices, list_apps, list_files, read_preferences
- prefs: add_preference, change_preference, delete_preference
"""

from __future__ import annotations

from pref_editor_mcp.backends import PreferenceBackend
from pref_editor_mcp.routing import ToolRegistry
from pref_editor_mcp.tools.common import (
    handle_devices,
    handle_list_apps,
    handle_list_files,
    handle_read_preferences,
    register_common_tools,
)
from pref_editor_mcp.tools.prefs import (
    handle_add_preference,
    handle_change_preference,
    handle_delete_preference,
    register_preference_tools,
)

__all__ = [
    "create_tool_registry",
    "handle_add_preference",
    "handle_change_preference",
    "handle_delete_preference",
    "handle_devices",
    "handle_list_apps",
    "handle_list_files",
    "handle_read_preferences",
    "register_common_tools",
    "register_preference_tools",
]


def create_tool_registry(backend: PreferenceBackend) -> ToolRegistry:
    """
    Create a registry with every Pref-Editor tool bound to a backend.

    Args:
        backend: Preference backend the tools delegate to.

    Returns:
        A populated ToolRegistry.
    """
    registry = ToolRegistry()
    register_preference_tools(registry, backend)
    register_common_tools(registry, backend)
    return registry

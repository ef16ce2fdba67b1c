"""
Browsing tools for the Pref-Editor MCP Server.

This module implements the read-only tools:
- devices: list connected devices
- list_apps: list apps installed on a device
- list_files: list preference files of an app
- read_preferences: read every preference of a file

All tool arguments are connection coordinates and are forwarded to the
backend as received, extra fields included.
"""

from __future__ import annotations

import functools
from typing import Any

from pref_editor_mcp.backends import PreferenceBackend
from pref_editor_mcp.context import ToolContext
from pref_editor_mcp.envelope import JSON_MIME_TYPE, text_item
from pref_editor_mcp.preferences import to_json
from pref_editor_mcp.routing import ToolRegistry, run_tool
from pref_editor_mcp.schemas import AppSchema, DeviceSchema, EmptySchema, FileSchema


async def handle_devices(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the devices tool call.

    Returns:
        Envelope with one text item per device serial number.
    """

    async def list_devices(_args: dict[str, Any]) -> list[dict[str, Any]]:
        return [text_item(device.serial) for device in await backend.list_devices()]

    return await run_tool(params, EmptySchema, list_devices, ctx)


async def handle_list_apps(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the list_apps tool call.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId: Device serial number
        backend: Preference backend.

    Returns:
        Envelope with one text item per package name.
    """

    async def list_apps(connection: dict[str, Any]) -> list[dict[str, Any]]:
        apps = await backend.list_apps(connection)
        return [text_item(app.package_name) for app in apps]

    return await run_tool(params, DeviceSchema, list_apps, ctx)


async def handle_list_files(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the list_files tool call.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId: Device serial number
            - appId: Application package name
        backend: Preference backend.

    Returns:
        Envelope with one text item per preference file name.
    """

    async def list_files(connection: dict[str, Any]) -> list[dict[str, Any]]:
        files = await backend.list_files(connection)
        return [text_item(file.name) for file in files]

    return await run_tool(params, AppSchema, list_files, ctx)


async def handle_read_preferences(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the read_preferences tool call.

    Each preference is rendered as its own JSON item rather than as one
    array, so clients can consume entries independently.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId: Device serial number
            - appId: Application package name
            - filename: Preference file name, with or without extension
        backend: Preference backend.

    Returns:
        Envelope with one application/json text item per preference.
    """

    async def read_preferences(connection: dict[str, Any]) -> list[dict[str, Any]]:
        records = await backend.read_preferences(connection)
        return [text_item(to_json(record), JSON_MIME_TYPE) for record in records]

    return await run_tool(params, FileSchema, read_preferences, ctx)


def register_common_tools(registry: ToolRegistry, backend: PreferenceBackend) -> None:
    """
    Register the browsing tools.

    Args:
        registry: Registry to add the tools to.
        backend: Preference backend the handlers delegate to.
    """
    registry.register(
        "devices",
        "Lists connected Android devices",
        EmptySchema,
        functools.partial(handle_devices, backend=backend),
    )
    registry.register(
        "list_apps",
        "Lists apps installed on device",
        DeviceSchema,
        functools.partial(handle_list_apps, backend=backend),
    )
    registry.register(
        "list_files",
        "Lists preference files for an app",
        AppSchema,
        functools.partial(handle_list_files, backend=backend),
    )
    registry.register(
        "read_preferences",
        "Reads all user preferences in a file",
        FileSchema,
        functools.partial(handle_read_preferences, backend=backend),
    )

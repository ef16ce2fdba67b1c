"""
Preference editing tools for the Pref-Editor MCP Server.

This module implements the tools that modify a preference file:
- add_preference: add a new preference with a value and type
- change_preference: change the value of an existing preference
- delete_preference: delete an existing preference

Arguments are split into the preference payload (name, value, type) and the
connection coordinates; everything that is not payload is forwarded to the
backend unchanged.
"""

from __future__ import annotations

import functools
from typing import Any

from pref_editor_mcp.backends import PreferenceBackend
from pref_editor_mcp.context import ToolContext
from pref_editor_mcp.envelope import text_item
from pref_editor_mcp.logging import get_logger
from pref_editor_mcp.preferences import (
    PartialPreference,
    Preference,
    PreferenceKey,
    parse_type,
)
from pref_editor_mcp.routing import ToolRegistry, run_tool
from pref_editor_mcp.schemas import AddPrefSchema, DeletePrefSchema, EditPrefSchema

logger = get_logger(__name__)


def _split(
    params: dict[str, Any], *payload_fields: str
) -> tuple[list[Any], dict[str, Any]]:
    """Split arguments into payload values (in order) and connection fields."""
    payload = [params[name] for name in payload_fields]
    connection = {k: v for k, v in params.items() if k not in payload_fields}
    return payload, connection


async def handle_add_preference(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the add_preference tool call.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId, appId, filename: Connection coordinates
            - name: Preference key
            - value: Preference value as text
            - type: integer, boolean, float, double, long or string
        backend: Preference backend.

    Returns:
        Envelope confirming the addition.
    """

    async def add_preference(args: dict[str, Any]) -> list[dict[str, Any]]:
        (name, value, type_name), connection = _split(args, "name", "value", "type")
        preference = Preference(key=name, value=value, type=parse_type(type_name))
        await backend.add_preference(preference, connection)
        logger.info(
            "Preference added",
            extra={
                "key": name,
                "type": preference.type.value,
                "file": connection["filename"],
            },
        )
        return [text_item("Preference added")]

    return await run_tool(params, AddPrefSchema, add_preference, ctx)


async def handle_change_preference(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the change_preference tool call.

    The stored type of the preference is kept; it is not re-specified.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId, appId, filename: Connection coordinates
            - name: Preference key
            - value: New value as text
        backend: Preference backend.

    Returns:
        Envelope confirming the change.
    """

    async def change_preference(args: dict[str, Any]) -> list[dict[str, Any]]:
        (name, value), connection = _split(args, "name", "value")
        await backend.change_preference(PartialPreference(key=name, value=value), connection)
        logger.info(
            "Preference changed",
            extra={"key": name, "file": connection["filename"]},
        )
        return [text_item("Preference changed")]

    return await run_tool(params, EditPrefSchema, change_preference, ctx)


async def handle_delete_preference(
    ctx: ToolContext,
    params: dict[str, Any],
    *,
    backend: PreferenceBackend,
) -> dict[str, Any]:
    """
    Handle the delete_preference tool call.

    Args:
        ctx: The ToolContext for this request.
        params: Request parameters:
            - deviceId, appId, filename: Connection coordinates
            - name: Preference key
        backend: Preference backend.

    Returns:
        Envelope confirming the deletion.
    """

    async def delete_preference(args: dict[str, Any]) -> list[dict[str, Any]]:
        (name,), connection = _split(args, "name")
        await backend.delete_preference(PreferenceKey(key=name), connection)
        logger.info(
            "Preference deleted",
            extra={"key": name, "file": connection["filename"]},
        )
        return [text_item("Preference deleted")]

    return await run_tool(params, DeletePrefSchema, delete_preference, ctx)


def register_preference_tools(
    registry: ToolRegistry, backend: PreferenceBackend
) -> None:
    """
    Register the preference editing tools.

    Args:
        registry: Registry to add the tools to.
        backend: Preference backend the handlers delegate to.
    """
    registry.register(
        "change_preference",
        "Changes the value of an existing preference",
        EditPrefSchema,
        functools.partial(handle_change_preference, backend=backend),
    )
    registry.register(
        "delete_preference",
        "Delete an existing preference",
        DeletePrefSchema,
        functools.partial(handle_delete_preference, backend=backend),
    )
    registry.register(
        "add_preference",
        "Adds a new preference given the name, value and type.",
        AddPrefSchema,
        functools.partial(handle_add_preference, backend=backend),
    )

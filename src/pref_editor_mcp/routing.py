"""
Tool registration and dispatch for the Pref-Editor MCP Server.

This module provides:
- Tool: a tool name, description, argument schema and handler
- ToolRegistry: maps tool names to tools, lists definitions, invokes handlers
- run_tool: the validate -> call backend -> envelope step shared by all tools
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pref_editor_mcp.envelope import error_envelope, error_message, success_envelope
from pref_editor_mcp.errors import InternalError, NotFoundError, ToolError
from pref_editor_mcp.logging import get_logger
from pref_editor_mcp.schemas import Schema, input_schema, validate

if TYPE_CHECKING:
    from pref_editor_mcp.context import ToolContext

logger = get_logger(__name__)

# Handlers take the call context and the raw tool arguments and return an
# envelope dictionary.
ToolHandler = Callable[["ToolContext", dict[str, Any]], Awaitable[dict[str, Any]]]

# Tool actions receive validated arguments and return envelope content items.
ToolAction = Callable[[dict[str, Any]], Awaitable[list[dict[str, Any]]]]


async def run_tool(
    params: dict[str, Any],
    schema: type[Schema],
    action: ToolAction,
    ctx: ToolContext | None = None,
) -> dict[str, Any]:
    """
    Validate tool arguments, run the tool action and wrap the outcome.

    Validation failures skip the action. Any exception raised by validation
    or by the action becomes an error envelope; nothing is re-raised.

    Args:
        params: Raw tool arguments.
        schema: Schema the arguments must satisfy.
        action: Coroutine function producing the success content items.
        ctx: Optional ToolContext, used for logging.

    Returns:
        A success or error envelope.

    Example:
        >>> async def action(args):
        ...     return [text_item(args["deviceId"])]
        >>> await run_tool({"deviceId": "X"}, DeviceSchema, action)
        {'content': [{'type': 'text', 'text': 'X'}]}
    """
    tool_name = ctx.tool_name if ctx is not None else schema.__name__

    try:
        validate(params, schema)
        items = await action(params)
    except Exception as e:
        logger.warning(
            "Tool call failed",
            extra={
                "tool": tool_name,
                "request_id": ctx.request_id if ctx is not None else None,
                "error_type": type(e).__name__,
                "error": error_message(e),
            },
        )
        return error_envelope(e)

    logger.debug("Tool call succeeded", extra={"tool": tool_name, "items": len(items)})
    return success_envelope(items)


@dataclass(frozen=True)
class Tool:
    """
    A registered tool.

    Attributes:
        name: Unique tool name (e.g., "list_apps").
        description: Human-readable description shown to clients.
        schema: Schema of the tool arguments.
        handler: Async handler returning an envelope.
    """

    name: str
    description: str
    schema: type[Schema]
    handler: ToolHandler

    def definition(self) -> dict[str, Any]:
        """
        Return the MCP tool definition used in tools/list.

        Returns:
            Dictionary with name, description and inputSchema.
        """
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": input_schema(self.schema),
        }


class ToolRegistry:
    """
    Registry mapping tool names to tools.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register("list_apps", "Lists apps installed on device",
        ...                   DeviceSchema, handler)
        >>> result = await registry.invoke("list_apps", ctx, {"deviceId": "X"})
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: dict[str, Tool] = {}

    def register(
        self,
        name: str,
        description: str,
        schema: type[Schema],
        handler: ToolHandler,
    ) -> Tool:
        """
        Register a tool.

        Args:
            name: Unique tool name.
            description: Human-readable description.
            schema: Schema of the tool arguments.
            handler: Async function that handles the tool call.

        Returns:
            The registered Tool.

        Raises:
            ValueError: If a tool is already registered under the name.
        """
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        tool = Tool(name=name, description=description, schema=schema, handler=handler)
        self._tools[name] = tool
        return tool

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def get_tool(self, name: str) -> Tool | None:
        """
        Get a tool by name.

        Args:
            name: Tool name to look up.

        Returns:
            The Tool, or None if not found.
        """
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List registered tool names in registration order."""
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """Return the MCP definitions of all registered tools."""
        return [tool.definition() for tool in self._tools.values()]

    async def invoke(
        self,
        name: str,
        ctx: ToolContext,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Invoke a tool by name.

        Args:
            name: Tool name to invoke.
            ctx: ToolContext for the request.
            params: Raw tool arguments.

        Returns:
            The envelope produced by the tool handler.

        Raises:
            NotFoundError: If the tool is not registered.
            InternalError: If the handler itself raises instead of returning
                an envelope.
        """
        tool = self.get_tool(name)
        if tool is None:
            raise NotFoundError(
                f"Tool '{name}' is not registered",
                details={"tool": name},
            )

        try:
            return await tool.handler(ctx, params)
        except ToolError:
            raise
        except Exception as e:
            raise InternalError(
                message=f"Internal error in tool '{name}': {e!s}",
                details={"tool": name, "exception_type": type(e).__name__},
            ) from e

    def __contains__(self, name: str) -> bool:
        """Check if a tool is registered (for 'in' operator)."""
        return name in self._tools

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tools)

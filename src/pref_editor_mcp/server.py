"""
MCP Server implementation for the Pref-Editor MCP Server.

This module implements the MCPServer class that communicates via JSON-RPC 2.0
over stdio (one message per line), answers the MCP lifecycle and listing
methods, and dispatches tools/call and resources/read.
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any, TextIO

from pref_editor_mcp import __version__
from pref_editor_mcp.context import ToolContext
from pref_editor_mcp.errors import ToolError
from pref_editor_mcp.logging import get_logger
from pref_editor_mcp.protocol import (
    JSONRPCError,
    JSONRPCRequest,
    create_internal_error,
    create_invalid_params_error,
    create_method_not_found_error,
    format_error_response,
    format_success_response,
    parse_request,
    tool_error_to_jsonrpc_error,
)
from pref_editor_mcp.resources import ResourceRouter
from pref_editor_mcp.routing import ToolRegistry
from pref_editor_mcp.tools import create_tool_registry

if TYPE_CHECKING:
    from pref_editor_mcp.backends import PreferenceBackend
    from pref_editor_mcp.config import AppConfig

logger = get_logger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"

# Largest accepted request line.
MAX_LINE_BYTES = 16 * 1024 * 1024


async def process_request(request_json: str, server: MCPServer) -> str | None:
    """
    Process a single JSON-RPC request and return the response.

    Args:
        request_json: Raw JSON string containing the request.
        server: MCPServer whose methods handle the request.

    Returns:
        JSON string containing the response, or None for notifications.
    """
    request_id: str | int | None = None

    try:
        request = parse_request(request_json)
        request_id = request.id

        if request.is_notification:
            try:
                await server.dispatch(request)
            except Exception as e:
                logger.debug(
                    "Notification not handled",
                    extra={"method": request.method, "error": str(e)},
                )
            return None

        result = await server.dispatch(request)
        return format_success_response(request_id, result).to_json()

    except JSONRPCError as e:
        return format_error_response(request_id, e).to_json()

    except ToolError as e:
        return format_error_response(request_id, tool_error_to_jsonrpc_error(e)).to_json()

    except Exception as e:
        logger.exception(
            "Unexpected error processing request",
            extra={"request_id": request_id, "error": str(e)},
        )
        jsonrpc_error = create_internal_error(
            message=f"Internal server error: {type(e).__name__}",
            details={"exception": str(e)},
        )
        return format_error_response(request_id, jsonrpc_error).to_json()


class MCPServer:
    """
    MCP Server that communicates via JSON-RPC 2.0 over stdio.

    Example:
        >>> server = MCPServer(create_tool_registry(SandboxBackend()))
        >>> await server.run()

    Attributes:
        registry: ToolRegistry with registered tools.
        resources: ResourceRouter, or None when resources are disabled.
        running: Whether the server is currently running.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        resources: ResourceRouter | None = None,
        *,
        name: str = "Pref-Editor",
        version: str = __version__,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        """
        Initialize the MCP Server.

        Args:
            registry: ToolRegistry with the tools to serve.
            resources: Optional ResourceRouter for the resource view.
            name: Server name reported from initialize.
            version: Server version reported from initialize.
            protocol_version: MCP protocol version offered to clients.
            stdin: Optional stdin stream. Uses sys.stdin if not provided.
            stdout: Optional stdout stream. Uses sys.stdout if not provided.
        """
        self.registry = registry
        self.resources = resources
        self.name = name
        self.version = version
        self.protocol_version = protocol_version
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self.running = False
        self._client_info: dict[str, Any] = {}

    # -------------------------------------------------------------------------
    # MCP methods
    # -------------------------------------------------------------------------

    async def dispatch(self, request: JSONRPCRequest) -> Any:
        """
        Handle one parsed request and return its result.

        Raises:
            JSONRPCError: For unknown methods and invalid params.
            ToolError: For unknown resources and resource read failures.
        """
        method = request.method
        params = request.params

        if method == "initialize":
            return self._initialize(params)
        if method in ("notifications/initialized", "initialized"):
            return None
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self.registry.definitions()}
        if method == "tools/call":
            return await self._call_tool(request)
        if self.resources is not None:
            if method == "resources/list":
                return {"resources": self.resources.resources()}
            if method == "resources/templates/list":
                return {"resourceTemplates": self.resources.templates()}
            if method == "resources/read":
                return await self._read_resource(self.resources, params)

        raise create_method_not_found_error(method)

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo")
        self._client_info = client_info if isinstance(client_info, dict) else {}
        logger.info(
            "Client initialized",
            extra={
                "client": self._client_info.get("name"),
                "client_protocol_version": params.get("protocolVersion"),
            },
        )

        capabilities: dict[str, Any] = {"tools": {}}
        if self.resources is not None:
            capabilities["resources"] = {}

        return {
            "protocolVersion": self.protocol_version,
            "capabilities": capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }

    async def _call_tool(self, request: JSONRPCRequest) -> dict[str, Any]:
        name = request.params.get("name")
        if not isinstance(name, str) or not self.registry.has_tool(name):
            raise create_invalid_params_error(
                f"Unknown tool: {name}",
                details={"tool": name},
            )

        arguments = request.params.get("arguments")
        if arguments is None:
            arguments = {}

        ctx = ToolContext.from_request(
            request,
            tool_name=name,
            metadata={"client": self._client_info.get("name")},
        )
        logger.debug("Tool call", extra=ctx.log_fields())
        return await self.registry.invoke(name, ctx, arguments)

    async def _read_resource(
        self, resources: ResourceRouter, params: dict[str, Any]
    ) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise create_invalid_params_error("Missing resource URI")
        return await resources.read(uri)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def handle_request(self, request_json: str) -> str | None:
        """
        Handle a single JSON-RPC request.

        Args:
            request_json: Raw JSON string containing the request.

        Returns:
            JSON string containing the response, or None for notifications.
        """
        return await process_request(request_json, self)

    async def run(self) -> None:
        """
        Run the server, reading from stdin and writing to stdout.

        The server runs until stdin is closed or stop() is called. Each line
        from stdin is one JSON-RPC message.

        Raises:
            OSError: If stdin cannot be attached to the event loop.
        """
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, self._stdin)

        self.running = True
        logger.info(
            "MCP Server starting",
            extra={
                "tools_count": len(self.registry),
                "resources_enabled": self.resources is not None,
            },
        )

        try:
            while self.running:
                try:
                    line = await reader.readline()
                    if not line:
                        break

                    try:
                        request_json = line.decode("utf-8").strip()
                    except UnicodeDecodeError as e:
                        logger.warning(
                            "Invalid UTF-8 encoding in request",
                            extra={"error": str(e)},
                        )
                        error = create_internal_error(
                            "Invalid request encoding: UTF-8 required"
                        )
                        self._write_response(format_error_response(None, error).to_json())
                        continue

                    if not request_json:
                        continue

                    response = await self.handle_request(request_json)
                    if response:
                        self._write_response(response)

                except Exception as e:
                    logger.exception("Error in server loop", extra={"error": str(e)})
                    error = create_internal_error(str(e))
                    self._write_response(format_error_response(None, error).to_json())

        finally:
            self.running = False
            logger.info("MCP Server stopped")

    def stop(self) -> None:
        """Stop the server gracefully."""
        self.running = False

    def _write_response(self, response_json: str) -> None:
        """Write a response to stdout."""
        self._stdout.write(response_json + "\n")
        self._stdout.flush()


def create_server(config: AppConfig, backend: PreferenceBackend) -> MCPServer:
    """
    Create an MCP Server with every tool (and, if enabled, the resource view)
    bound to a backend.

    Args:
        config: Application configuration.
        backend: Preference backend.

    Returns:
        Configured MCPServer instance.
    """
    registry = create_tool_registry(backend)
    resources = ResourceRouter(backend) if config.resources.enabled else None
    return MCPServer(
        registry,
        resources,
        name=config.server.name,
        protocol_version=config.server.protocol_version,
    )

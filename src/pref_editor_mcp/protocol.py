"""
JSON-RPC 2.0 framing for the Pref-Editor MCP Server.

Only protocol-level failures become JSON-RPC errors: malformed frames,
unknown methods, unknown tools and unreadable resources. A tool that fails
still answers tools/call with a result, carrying an error envelope.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pref_editor_mcp.errors import ToolError

# =============================================================================
# JSON-RPC Error Codes
# =============================================================================

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# ToolError.error_code -> JSON-RPC code, for errors raised outside tools/call.
ERROR_CODE_MAP: dict[str, int] = {
    "invalid_argument": INVALID_PARAMS,
    "not_found": -32003,
    "already_exists": -32004,
    "unavailable": -32006,
    "internal": -32099,
}

DEFAULT_SERVER_ERROR = -32000


# =============================================================================
# Data Classes
# =============================================================================


class JSONRPCError(Exception):
    """Error member of a response; raised while handling a request."""

    def __init__(
        self,
        code: int,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class JSONRPCRequest:
    """
    A request frame read from stdin.

    `id` is None for notifications such as notifications/initialized, and
    `params` is always an object.
    """

    jsonrpc: str
    id: str | int | None
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class JSONRPCResponse:
    """A response frame; exactly one of result and error is sent."""

    jsonrpc: str
    id: str | int | None
    result: Any | None = None
    error: JSONRPCError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            response["error"] = self.error.to_dict()
        else:
            response["result"] = self.result
        return response

    def to_json(self) -> str:
        """One line of compact JSON, non-ASCII preference values kept as is."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Request Parsing
# =============================================================================


def parse_request(request_json: str) -> JSONRPCRequest:
    """
    Parse one line read from stdin.

    Raises:
        JSONRPCError: -32700 for invalid JSON, -32600 for a frame that is not
            a request, -32602 when params is not an object.
    """
    try:
        data = json.loads(request_json)
    except json.JSONDecodeError as e:
        raise JSONRPCError(
            code=PARSE_ERROR,
            message=f"Parse error: Invalid JSON - {e.msg}",
        ) from e

    if not isinstance(data, dict):
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message="Invalid Request: Request must be a JSON object",
        )

    jsonrpc = data.get("jsonrpc")
    if jsonrpc is None:
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message="Invalid Request: Missing 'jsonrpc' field",
        )
    if jsonrpc != "2.0":
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message=f"Invalid Request: jsonrpc must be '2.0', got '{jsonrpc}'",
        )

    method = data.get("method")
    if method is None:
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message="Invalid Request: Missing 'method' field",
        )
    if not isinstance(method, str) or not method:
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message="Invalid Request: 'method' must be a non-empty string",
        )

    request_id = data.get("id")
    if request_id is not None and (
        isinstance(request_id, bool) or not isinstance(request_id, (str, int))
    ):
        raise JSONRPCError(
            code=INVALID_REQUEST,
            message="Invalid Request: 'id' must be a string, a number or null",
        )

    # MCP methods take named params only.
    params = data.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise JSONRPCError(
            code=INVALID_PARAMS,
            message="Invalid params: 'params' must be an object",
        )

    return JSONRPCRequest(jsonrpc="2.0", id=request_id, method=method, params=params)


# =============================================================================
# Response Formatting
# =============================================================================


def format_success_response(
    request_id: str | int | None,
    result: Any,
) -> JSONRPCResponse:
    return JSONRPCResponse(jsonrpc="2.0", id=request_id, result=result)


def format_error_response(
    request_id: str | int | None,
    error: JSONRPCError,
) -> JSONRPCResponse:
    """Error response; `request_id` is None when the frame could not be parsed."""
    return JSONRPCResponse(jsonrpc="2.0", id=request_id, error=error)


# =============================================================================
# Error Factories
# =============================================================================


def tool_error_to_jsonrpc_error(tool_error: ToolError) -> JSONRPCError:
    """
    Wrap a ToolError raised by a resource read.

    The code comes from ERROR_CODE_MAP (-32000 for unmapped error codes), and
    the ToolError itself travels as `data`.
    """
    return JSONRPCError(
        code=ERROR_CODE_MAP.get(tool_error.error_code, DEFAULT_SERVER_ERROR),
        message=tool_error.message,
        data=tool_error.to_dict(),
    )


def _error(
    code: int, error_code: str, message: str, details: dict[str, Any] | None
) -> JSONRPCError:
    return JSONRPCError(
        code=code,
        message=message,
        data={"error_code": error_code, "message": message, "details": details or {}},
    )


def create_method_not_found_error(method: str) -> JSONRPCError:
    """-32601 for an MCP method this server does not implement."""
    return JSONRPCError(
        code=METHOD_NOT_FOUND,
        message=f"Method not found: {method}",
        data={
            "error_code": "not_found",
            "message": f"Method '{method}' is not supported",
            "details": {"method": method},
        },
    )


def create_invalid_params_error(
    message: str, details: dict[str, Any] | None = None
) -> JSONRPCError:
    """-32602, e.g. for an unknown tool name or a missing resource URI."""
    return _error(INVALID_PARAMS, "invalid_argument", message, details)


def create_internal_error(
    message: str, details: dict[str, Any] | None = None
) -> JSONRPCError:
    """-32603 for exceptions escaping a method handler."""
    return _error(INTERNAL_ERROR, "internal", message, details)

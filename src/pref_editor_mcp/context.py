"""
Per-call context passed to tool handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pref_editor_mcp.protocol import JSONRPCRequest


@dataclass
class ToolContext:
    """
    Context of one tools/call request.

    Attributes:
        tool_name: Name of the tool being called.
        request_id: JSON-RPC id of the tools/call request.
        received_at: When the server picked up the request (UTC).
        metadata: Session details, e.g. the client name sent with initialize.
    """

    tool_name: str
    request_id: str | int | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def log_fields(self) -> dict[str, Any]:
        """Fields to attach to log records about this call."""
        return {
            "tool": self.tool_name,
            "request_id": self.request_id,
            "received_at": self.received_at.isoformat(),
            **self.metadata,
        }

    @classmethod
    def from_request(
        cls,
        request: JSONRPCRequest,
        tool_name: str,
        metadata: dict[str, Any] | None = None,
    ) -> ToolContext:
        """Build the context for a parsed tools/call request."""
        return cls(tool_name=tool_name, request_id=request.id, metadata=metadata or {})

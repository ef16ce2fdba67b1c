"""
Error types for the Pref-Editor MCP Server.

This module defines the ToolError base class and the subclasses raised while
validating tool arguments, coercing preference types, and talking to the
preference backend.

Inside a tool call every error is turned into an error envelope. Outside of
tool calls (resources, unknown tools) errors map to JSON-RPC errors at the
protocol layer.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ToolError(Exception):
    """
    Base exception class for MCP tool errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_argument",
            "not_found", "unavailable", "internal").
        message: Human-readable error message.
        details: Optional structured details (e.g., field names, values).

    Example:
        >>> raise ToolError(
        ...     error_code="not_found",
        ...     message="Device 'emulator-5554' is not connected",
        ...     details={"deviceId": "emulator-5554"},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize a ToolError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for serialization.

        Returns:
            Dictionary with error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(ToolError):
    """
    Error raised when a tool receives invalid input arguments.

    This error maps to the "invalid_argument" error code.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class ValidationError(InvalidArgumentError):
    """
    Error raised when tool arguments do not satisfy the tool's schema.

    The message aggregates every field failure so a single call reports all
    problems at once.

    Attributes:
        errors: One message per failing field, in schema order.
    """

    def __init__(self, errors: Sequence[str]) -> None:
        """Initialize a ValidationError from per-field failure messages."""
        self.errors = list(errors)
        super().__init__(
            f"Invalid input: {', '.join(self.errors)}",
            details={"errors": self.errors},
        )


class TypeCoercionError(InvalidArgumentError):
    """
    Error raised when a preference type name is not a known TypeTag.

    Attributes:
        text: The offending type name, exactly as supplied.
        accepted: The accepted type names.
    """

    def __init__(self, text: Any, accepted: Sequence[str]) -> None:
        """Initialize a TypeCoercionError."""
        self.text = text
        self.accepted = tuple(accepted)
        choices = f"{', '.join(self.accepted[:-1])} or {self.accepted[-1]}"
        super().__init__(
            f"Invalid data type: '{text}'. Choose one of: {choices}",
            details={"type": text, "accepted": list(self.accepted)},
        )


InvalidTypeError = TypeCoercionError


class CollaboratorError(ToolError):
    """
    Error raised by a preference backend.

    Covers unreachable devices, missing apps or files, duplicate or missing
    preference keys and similar failures. The message is passed through to
    the caller unchanged.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str = "unavailable",
    ) -> None:
        """Initialize a CollaboratorError."""
        super().__init__(error_code=error_code, message=message, details=details)


class NotFoundError(ToolError):
    """
    Error raised when a tool or resource URI is not known to the server.

    This error maps to the "not_found" error code.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a NotFoundError."""
        super().__init__(error_code="not_found", message=message, details=details)


class InternalError(ToolError):
    """
    Error raised for unexpected internal errors.

    This error maps to the "internal" error code and should be used for
    unexpected exceptions that should be logged with full stack traces.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InternalError."""
        super().__init__(error_code="internal", message=message, details=details)

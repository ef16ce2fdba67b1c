"""
Tool result envelopes.

Every tool call answers with one of two shapes:

- success: {"content": [item, ...]}
- error:   {"isError": true, "content": [{"type": "text", "text": message}]}

where each item is {"type": "text", "text": ..., "mimeType"?: ...}. The error
text is taken from the failure the same way whether it came from argument
validation, type coercion or the backend.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

UNKNOWN_ERROR_MESSAGE = "Unknown error"

JSON_MIME_TYPE = "application/json"


def text_item(text: str, mime_type: str | None = None) -> dict[str, Any]:
    """
    Build a text content item.

    Args:
        text: Item text.
        mime_type: Optional MIME type of the text (e.g., "application/json").

    Returns:
        Content item dictionary.
    """
    item: dict[str, Any] = {"type": "text", "text": text}
    if mime_type is not None:
        item["mimeType"] = mime_type
    return item


def success_envelope(items: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Wrap content items in a success envelope."""
    return {"content": list(items)}


def error_message(error: BaseException) -> str:
    """
    Extract the human-readable message of a failure.

    Uses the error's ``message`` attribute when it is a string, otherwise the
    exception text when the exception was raised with arguments. An exception
    carrying neither yields "Unknown error".

    Args:
        error: The caught exception.

    Returns:
        Message text for the error envelope.
    """
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    if error.args:
        return str(error)
    return UNKNOWN_ERROR_MESSAGE


def error_envelope(error: BaseException) -> dict[str, Any]:
    """
    Wrap a failure in an error envelope.

    Args:
        error: The caught exception.

    Returns:
        Error envelope with exactly one text item.

    Example:
        >>> error_envelope(RuntimeError("Device offline"))
        {'isError': True, 'content': [{'type': 'text', 'text': 'Device offline'}]}
    """
    return {"isError": True, "content": [text_item(error_message(error))]}

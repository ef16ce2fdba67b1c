"""
Tests for tool result envelopes.

This test module validates:
- Text items with and without a MIME type
- Success envelopes preserve item order
- Error messages are extracted from any kind of exception
"""

from __future__ import annotations

from pref_editor_mcp.envelope import (
    JSON_MIME_TYPE,
    UNKNOWN_ERROR_MESSAGE,
    error_envelope,
    error_message,
    success_envelope,
    text_item,
)
from pref_editor_mcp.errors import CollaboratorError, TypeCoercionError


class TestTextItem:
    """Tests for text_item."""

    def test_plain_text(self) -> None:
        """Test a plain text item has no mimeType key."""
        assert text_item("emulator-5554") == {"type": "text", "text": "emulator-5554"}

    def test_with_mime_type(self) -> None:
        """Test a JSON text item carries its MIME type."""
        assert text_item("{}", JSON_MIME_TYPE) == {
            "type": "text",
            "text": "{}",
            "mimeType": "application/json",
        }


class TestSuccessEnvelope:
    """Tests for success_envelope."""

    def test_order_preserved(self) -> None:
        """Test items keep the order they were produced in."""
        items = [text_item("b"), text_item("a"), text_item("c")]

        assert success_envelope(items) == {"content": items}

    def test_empty(self) -> None:
        """Test an empty listing is still a success."""
        envelope = success_envelope([])

        assert envelope == {"content": []}
        assert "isError" not in envelope

    def test_accepts_generators(self) -> None:
        """Test any iterable of items is accepted."""
        envelope = success_envelope(text_item(s) for s in ("x", "y"))

        assert [item["text"] for item in envelope["content"]] == ["x", "y"]


class TestErrorMessage:
    """Tests for error_message."""

    def test_tool_error_message(self) -> None:
        """Test the message attribute of a ToolError is used."""
        error = CollaboratorError("Device offline", details={"deviceId": "X"})

        assert error_message(error) == "Device offline"

    def test_plain_exception(self) -> None:
        """Test the text of a plain exception is used."""
        assert error_message(RuntimeError("adb not found")) == "adb not found"

    def test_exception_without_message(self) -> None:
        """Test exceptions without text yield the fallback message."""
        assert error_message(RuntimeError()) == UNKNOWN_ERROR_MESSAGE
        assert UNKNOWN_ERROR_MESSAGE == "Unknown error"

    def test_non_string_message_attribute_ignored(self) -> None:
        """Test a non-string message attribute falls back to the exception text."""

        class CodedError(Exception):
            message = 42

        assert error_message(CodedError("boom")) == "boom"


class TestErrorEnvelope:
    """Tests for error_envelope."""

    def test_shape(self) -> None:
        """Test the error envelope has exactly one text item."""
        envelope = error_envelope(RuntimeError("Device offline"))

        assert envelope == {
            "isError": True,
            "content": [{"type": "text", "text": "Device offline"}],
        }

    def test_coercion_error(self) -> None:
        """Test a type coercion failure names the offending text."""
        envelope = error_envelope(TypeCoercionError("number", ["integer", "string"]))

        assert envelope["content"][0]["text"] == (
            "Invalid data type: 'number'. Choose one of: integer or string"
        )

    def test_unknown_error(self) -> None:
        """Test the fallback message reaches the envelope."""
        envelope = error_envelope(Exception())

        assert envelope["content"] == [{"type": "text", "text": "Unknown error"}]

"""
Tests for the browsing tools.

This test module validates:
- devices, list_apps, list_files and read_preferences produce one item per entry
- Connection arguments (extras included) reach the backend unchanged
- Empty listings are successes
- Backend failures become error envelopes with the backend's message
- Invalid arguments never reach the backend
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from pref_editor_mcp.backends import AppInfo, DeviceInfo, FileInfo, SandboxBackend
from pref_editor_mcp.context import ToolContext
from pref_editor_mcp.errors import CollaboratorError
from pref_editor_mcp.routing import ToolRegistry
from pref_editor_mcp.tools import (
    create_tool_registry,
    handle_devices,
    handle_list_apps,
    handle_list_files,
    handle_read_preferences,
    register_common_tools,
)

APP_ARGS = {"deviceId": "emulator-5554", "appId": "com.example.app"}
FILE_ARGS = {**APP_ARGS, "filename": "settings.xml"}


# =============================================================================
# Tests for devices
# =============================================================================


class TestDevices:
    """Tests for the devices tool."""

    @pytest.mark.asyncio
    async def test_one_item_per_device(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test each device serial becomes one text item."""
        mock_backend.list_devices.return_value = [
            DeviceInfo(serial="emulator-5554"),
            DeviceInfo(serial="R58M123ABC"),
        ]

        result = await handle_devices(ctx, {}, backend=mock_backend)

        assert result == {
            "content": [
                {"type": "text", "text": "emulator-5554"},
                {"type": "text", "text": "R58M123ABC"},
            ]
        }

    @pytest.mark.asyncio
    async def test_no_devices(self, ctx: ToolContext, mock_backend: MagicMock) -> None:
        """Test no devices is an empty success."""
        result = await handle_devices(ctx, {}, backend=mock_backend)

        assert result == {"content": []}

    @pytest.mark.asyncio
    async def test_backend_failure(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test an adb failure becomes an error envelope."""
        mock_backend.list_devices.side_effect = CollaboratorError("adb server not running")

        result = await handle_devices(ctx, {}, backend=mock_backend)

        assert result == {
            "isError": True,
            "content": [{"type": "text", "text": "adb server not running"}],
        }


# =============================================================================
# Tests for list_apps
# =============================================================================


class TestListApps:
    """Tests for the list_apps tool."""

    @pytest.mark.asyncio
    async def test_lists_package_names(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test package names are listed in backend order."""
        mock_backend.list_apps.return_value = [
            AppInfo(package_name="com.a"),
            AppInfo(package_name="com.b"),
        ]

        result = await handle_list_apps(ctx, {"deviceId": "X"}, backend=mock_backend)

        assert [item["text"] for item in result["content"]] == ["com.a", "com.b"]
        mock_backend.list_apps.assert_awaited_once_with({"deviceId": "X"})

    @pytest.mark.asyncio
    async def test_empty_listing(self, ctx: ToolContext, mock_backend: MagicMock) -> None:
        """Test a device without apps yields an empty success."""
        result = await handle_list_apps(ctx, {"deviceId": "X"}, backend=mock_backend)

        assert result == {"content": []}
        assert "isError" not in result

    @pytest.mark.asyncio
    async def test_missing_device_id(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test missing deviceId is reported without calling the backend."""
        result = await handle_list_apps(ctx, {}, backend=mock_backend)

        assert result["isError"] is True
        assert result["content"][0]["text"] == "Invalid input: deviceId: Field required"
        mock_backend.list_apps.assert_not_called()

    @pytest.mark.asyncio
    async def test_messageless_backend_failure(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test a failure without text reports "Unknown error"."""
        mock_backend.list_apps.side_effect = RuntimeError()

        result = await handle_list_apps(ctx, {"deviceId": "X"}, backend=mock_backend)

        assert result == {
            "isError": True,
            "content": [{"type": "text", "text": "Unknown error"}],
        }


# =============================================================================
# Tests for list_files
# =============================================================================


class TestListFiles:
    """Tests for the list_files tool."""

    @pytest.mark.asyncio
    async def test_lists_file_names(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test preference file names are listed."""
        mock_backend.list_files.return_value = [
            FileInfo(name="settings.xml"),
            FileInfo(name="flags.preferences_pb"),
        ]

        result = await handle_list_files(ctx, dict(APP_ARGS), backend=mock_backend)

        assert [item["text"] for item in result["content"]] == [
            "settings.xml",
            "flags.preferences_pb",
        ]

    @pytest.mark.asyncio
    async def test_extra_fields_forwarded(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test undeclared arguments reach the backend untouched."""
        params = {**APP_ARGS, "user": 10}

        await handle_list_files(ctx, params, backend=mock_backend)

        mock_backend.list_files.assert_awaited_once_with(
            {"deviceId": "emulator-5554", "appId": "com.example.app", "user": 10}
        )

    @pytest.mark.asyncio
    async def test_missing_fields_all_reported(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test both missing fields are named."""
        result = await handle_list_files(ctx, {}, backend=mock_backend)

        text = result["content"][0]["text"]
        assert "deviceId" in text
        assert "appId" in text


# =============================================================================
# Tests for read_preferences
# =============================================================================


class TestReadPreferences:
    """Tests for the read_preferences tool."""

    @pytest.mark.asyncio
    async def test_one_json_item_per_preference(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test each record becomes its own pretty-printed JSON item."""
        mock_backend.read_preferences.return_value = [
            {"key": "theme", "value": "dark", "type": "STRING"},
            {"key": "launches", "value": "3", "type": "INTEGER"},
        ]

        result = await handle_read_preferences(ctx, dict(FILE_ARGS), backend=mock_backend)

        assert len(result["content"]) == 2
        first = result["content"][0]
        assert first["type"] == "text"
        assert first["mimeType"] == "application/json"
        assert first["text"] == (
            '{\n  "key": "theme",\n  "value": "dark",\n  "type": "STRING"\n}'
        )
        assert json.loads(result["content"][1]["text"])["key"] == "launches"

    @pytest.mark.asyncio
    async def test_empty_file(self, ctx: ToolContext, mock_backend: MagicMock) -> None:
        """Test an empty preference file yields an empty success."""
        result = await handle_read_preferences(ctx, dict(FILE_ARGS), backend=mock_backend)

        assert result == {"content": []}

    @pytest.mark.asyncio
    async def test_backend_message_passed_through(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test the backend's message is the envelope text."""
        mock_backend.read_preferences.side_effect = CollaboratorError(
            "Preference file 'nope' not found in com.example.app"
        )

        result = await handle_read_preferences(
            ctx, {**FILE_ARGS, "filename": "nope"}, backend=mock_backend
        )

        assert result["isError"] is True
        assert result["content"] == [
            {"type": "text", "text": "Preference file 'nope' not found in com.example.app"}
        ]


# =============================================================================
# Tests against the sandbox
# =============================================================================


@pytest.mark.integration
class TestBrowsingSandbox:
    """End-to-end browsing against the in-memory backend."""

    @pytest.mark.asyncio
    async def test_walk_hierarchy(self, ctx: ToolContext, sandbox: SandboxBackend) -> None:
        """Test devices -> apps -> files against the sandbox."""
        devices = await handle_devices(ctx, {}, backend=sandbox)
        apps = await handle_list_apps(ctx, {"deviceId": "emulator-5554"}, backend=sandbox)
        files = await handle_list_files(ctx, dict(APP_ARGS), backend=sandbox)

        assert [i["text"] for i in devices["content"]] == ["emulator-5554", "R58M123ABC"]
        assert [i["text"] for i in apps["content"]] == ["com.example.app", "com.example.other"]
        assert [i["text"] for i in files["content"]] == [
            "settings.xml",
            "flags.preferences_pb",
        ]

    @pytest.mark.asyncio
    async def test_read_without_extension(
        self, ctx: ToolContext, populated_sandbox: SandboxBackend
    ) -> None:
        """Test a filename without extension resolves to the stored file."""
        result = await handle_read_preferences(
            ctx, {**FILE_ARGS, "filename": "settings"}, backend=populated_sandbox
        )

        records = [json.loads(item["text"]) for item in result["content"]]
        assert records == [
            {"key": "theme", "value": "dark", "type": "STRING"},
            {"key": "launches", "value": "3", "type": "INTEGER"},
        ]

    @pytest.mark.asyncio
    async def test_unknown_device(self, ctx: ToolContext, sandbox: SandboxBackend) -> None:
        """Test an unknown device is reported as an error envelope."""
        result = await handle_list_apps(ctx, {"deviceId": "ghost"}, backend=sandbox)

        assert result == {
            "isError": True,
            "content": [{"type": "text", "text": "Device 'ghost' is not connected"}],
        }


# =============================================================================
# Tests for registration
# =============================================================================


class TestRegistration:
    """Tests for tool registration."""

    def test_register_common_tools(self, mock_backend: MagicMock) -> None:
        """Test the browsing tools are registered with their descriptions."""
        registry = ToolRegistry()
        register_common_tools(registry, mock_backend)

        assert registry.list_tools() == [
            "devices",
            "list_apps",
            "list_files",
            "read_preferences",
        ]
        assert registry.get_tool("devices").description == "Lists connected Android devices"

    def test_create_tool_registry(self, mock_backend: MagicMock) -> None:
        """Test the full registry holds all seven tools."""
        registry = create_tool_registry(mock_backend)

        assert set(registry.list_tools()) == {
            "devices",
            "list_apps",
            "list_files",
            "read_preferences",
            "add_preference",
            "change_preference",
            "delete_preference",
        }

    @pytest.mark.asyncio
    async def test_registered_handler_bound_to_backend(
        self, ctx: ToolContext, mock_backend: MagicMock
    ) -> None:
        """Test invoking through the registry uses the bound backend."""
        mock_backend.list_devices.return_value = [DeviceInfo(serial="X")]
        registry = create_tool_registry(mock_backend)

        result = await registry.invoke("devices", ctx, {})

        assert result == {"content": [{"type": "text", "text": "X"}]}

"""
Pytest configuration and shared fixtures for the Pref-Editor MCP Server tests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from pref_editor_mcp.backends import SandboxBackend
from pref_editor_mcp.context import ToolContext
from pref_editor_mcp.preferences import Preference, TypeTag


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )


@pytest.fixture(autouse=True)
def _quiet_package_logger() -> Iterator[None]:
    """Keep the package logger from leaking handlers between tests."""
    yield
    package_logger = logging.getLogger("pref_editor_mcp")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def mock_backend() -> MagicMock:
    """A preference backend whose operations are AsyncMocks returning nothing."""
    backend = MagicMock()
    backend.list_devices = AsyncMock(return_value=[])
    backend.list_apps = AsyncMock(return_value=[])
    backend.list_files = AsyncMock(return_value=[])
    backend.read_preferences = AsyncMock(return_value=[])
    backend.add_preference = AsyncMock(return_value=None)
    backend.change_preference = AsyncMock(return_value=None)
    backend.delete_preference = AsyncMock(return_value=None)
    return backend


@pytest.fixture
def ctx() -> ToolContext:
    """A tool context for direct handler calls."""
    return ToolContext(tool_name="test_tool", request_id="test-req-1")


@pytest.fixture
def sandbox() -> SandboxBackend:
    """A sandbox with one device, one app and one preference file."""
    backend = SandboxBackend()
    backend.add_file("emulator-5554", "com.example.app", "settings.xml")
    backend.add_file("emulator-5554", "com.example.app", "flags.preferences_pb")
    backend.add_app("emulator-5554", "com.example.other")
    backend.add_device("R58M123ABC")
    return backend


@pytest.fixture
def populated_sandbox() -> SandboxBackend:
    """A sandbox with two preferences in settings.xml."""
    return SandboxBackend.from_dict(
        {
            "devices": {
                "emulator-5554": {
                    "com.example.app": {
                        "settings.xml": {
                            "theme": {"value": "dark", "type": "string"},
                            "launches": {"value": "3", "type": "integer"},
                        },
                    },
                },
            },
        }
    )


@pytest.fixture
def theme_preference() -> Preference:
    """A sample preference."""
    return Preference(key="theme", value="dark", type=TypeTag.STRING)

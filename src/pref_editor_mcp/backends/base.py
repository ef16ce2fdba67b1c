"""
Preference backend contract.

A backend does all device work: discovering devices, listing apps and
preference files, and reading or editing preferences. The server only
validates requests and shapes responses around these calls.

Connection coordinates are passed as the mapping the caller sent, keyed by
wire names ("deviceId", "appId", "filename"), including any extra fields the
caller added.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pref_editor_mcp.preferences import PartialPreference, Preference, PreferenceKey

Connection = Mapping[str, Any]


@dataclass(frozen=True)
class DeviceInfo:
    """A connected device."""

    serial: str


@dataclass(frozen=True)
class AppInfo:
    """An installed application."""

    package_name: str


@dataclass(frozen=True)
class FileInfo:
    """A preference file of an application."""

    name: str


@runtime_checkable
class PreferenceBackend(Protocol):
    """Operations the server delegates to. All may raise."""

    async def list_devices(self) -> list[DeviceInfo]:
        """List connected devices."""
        ...

    async def list_apps(self, connection: Connection) -> list[AppInfo]:
        """List apps installed on the device in `connection`."""
        ...

    async def list_files(self, connection: Connection) -> list[FileInfo]:
        """List preference files of the app in `connection`."""
        ...

    async def read_preferences(self, connection: Connection) -> list[Any]:
        """Read every preference of the file in `connection`.

        Records must be JSON-serializable (dicts, dataclasses or pydantic
        models).
        """
        ...

    async def add_preference(
        self, preference: Preference, connection: Connection
    ) -> None:
        """Add a preference. Fails if the key already exists."""
        ...

    async def change_preference(
        self, preference: PartialPreference, connection: Connection
    ) -> None:
        """Change the value of an existing preference. Fails if the key is missing."""
        ...

    async def delete_preference(
        self, preference: PreferenceKey, connection: Connection
    ) -> None:
        """Delete a preference. Fails if the key is missing."""
        ...

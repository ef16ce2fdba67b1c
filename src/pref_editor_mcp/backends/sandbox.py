"""
In-memory preference backend.

The sandbox backend keeps devices, apps, preference files and preferences in
memory. It stands in for a real device backend during development and tests,
and behaves like one where it matters: unknown coordinates, duplicate keys on
add and missing keys on change/delete all fail with a CollaboratorError.

Sandbox contents can be loaded from YAML:

    devices:
      emulator-5554:
        com.example.app:
          settings.xml:
            theme: {value: dark, type: string}
            launches: {value: "3", type: integer}
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from pref_editor_mcp.backends.base import AppInfo, Connection, DeviceInfo, FileInfo
from pref_editor_mcp.errors import CollaboratorError
from pref_editor_mcp.logging import get_logger
from pref_editor_mcp.preferences import (
    PartialPreference,
    Preference,
    PreferenceKey,
    parse_type,
)

logger = get_logger(__name__)

# Storage formats a filename may omit.
PREFERENCE_FILE_SUFFIXES = (".xml", ".preferences_pb")

# serial -> package -> filename -> key -> Preference
SandboxTree = dict[str, dict[str, dict[str, dict[str, Preference]]]]


def _mapping(value: Any, what: str, hint: str = "") -> Mapping[str, Any]:
    """Return `value` if it is a mapping, otherwise raise ValueError."""
    if not isinstance(value, Mapping):
        suffix = f" {hint}" if hint else ""
        raise ValueError(
            f"{what} must be a mapping{suffix}, got {type(value).__name__}"
        )
    return value


def _value_text(value: Any) -> str:
    """Render a YAML scalar as preference text; booleans as true/false."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SandboxBackend:
    """
    Preference backend backed by an in-memory tree.

    Example:
        >>> backend = SandboxBackend()
        >>> backend.add_file("emulator-5554", "com.example.app", "settings.xml")
        >>> await backend.list_devices()
        [DeviceInfo(serial='emulator-5554')]
    """

    def __init__(self, tree: SandboxTree | None = None) -> None:
        """
        Initialize the sandbox.

        Args:
            tree: Optional initial contents (serial -> package -> filename ->
                key -> Preference).
        """
        self._tree: SandboxTree = tree if tree is not None else {}

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SandboxBackend:
        """
        Build a sandbox from plain data (as loaded from YAML).

        Args:
            data: Mapping with a "devices" key, see module docstring.

        Returns:
            A populated SandboxBackend.

        Raises:
            ValueError: If the data is not shaped as expected.
            TypeCoercionError: If a preference declares an unknown type.
        """
        devices = _mapping(data, "Sandbox data").get("devices") or {}

        backend = cls()
        for serial, apps in _mapping(devices, "Sandbox data 'devices'").items():
            serial = str(serial)
            backend.add_device(serial)
            for package, files in _mapping(apps or {}, f"Device '{serial}'").items():
                package = str(package)
                backend.add_app(serial, package)
                for filename, prefs in _mapping(files or {}, f"App '{package}'").items():
                    filename = str(filename)
                    backend.add_file(serial, package, filename)
                    stored = backend._tree[serial][package][filename]
                    for key, entry in _mapping(prefs or {}, f"File '{filename}'").items():
                        entry = _mapping(
                            entry,
                            f"Preference '{key}' in {filename}",
                            "with 'value' and 'type'",
                        )
                        pref = Preference(
                            key=str(key),
                            value=_value_text(entry.get("value", "")),
                            type=parse_type(entry.get("type", "string")),
                        )
                        stored[pref.key] = pref
        return backend

    @classmethod
    def from_yaml(cls, path: Path | str) -> SandboxBackend:
        """
        Load a sandbox from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            A populated SandboxBackend.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Sandbox data file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        backend = cls.from_dict(data)
        logger.info(
            "Sandbox data loaded",
            extra={"path": str(path), "devices": len(backend._tree)},
        )
        return backend

    def add_device(self, serial: str) -> None:
        """Register a device (no-op if present)."""
        self._tree.setdefault(serial, {})

    def add_app(self, serial: str, package_name: str) -> None:
        """Register an app on a device, creating the device if needed."""
        self.add_device(serial)
        self._tree[serial].setdefault(package_name, {})

    def add_file(self, serial: str, package_name: str, filename: str) -> None:
        """Register an empty preference file, creating parents if needed."""
        self.add_app(serial, package_name)
        self._tree[serial][package_name].setdefault(filename, {})

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _apps(self, connection: Connection) -> dict[str, dict[str, dict[str, Preference]]]:
        serial = connection["deviceId"]
        try:
            return self._tree[serial]
        except KeyError:
            raise CollaboratorError(
                f"Device '{serial}' is not connected",
                details={"deviceId": serial},
                error_code="not_found",
            ) from None

    def _files(self, connection: Connection) -> dict[str, dict[str, Preference]]:
        package_name = connection["appId"]
        try:
            return self._apps(connection)[package_name]
        except KeyError:
            raise CollaboratorError(
                f"App '{package_name}' is not installed on {connection['deviceId']}",
                details={"appId": package_name},
                error_code="not_found",
            ) from None

    def _preferences(self, connection: Connection) -> dict[str, Preference]:
        files = self._files(connection)
        filename = connection["filename"]
        candidates = [filename] + [filename + suffix for suffix in PREFERENCE_FILE_SUFFIXES]
        for candidate in candidates:
            if candidate in files:
                return files[candidate]
        raise CollaboratorError(
            f"Preference file '{filename}' not found in {connection['appId']}",
            details={"filename": filename},
            error_code="not_found",
        )

    # -------------------------------------------------------------------------
    # PreferenceBackend
    # -------------------------------------------------------------------------

    async def list_devices(self) -> list[DeviceInfo]:
        return [DeviceInfo(serial=serial) for serial in self._tree]

    async def list_apps(self, connection: Connection) -> list[AppInfo]:
        return [AppInfo(package_name=name) for name in self._apps(connection)]

    async def list_files(self, connection: Connection) -> list[FileInfo]:
        return [FileInfo(name=name) for name in self._files(connection)]

    async def read_preferences(self, connection: Connection) -> list[Preference]:
        return list(self._preferences(connection).values())

    async def add_preference(
        self, preference: Preference, connection: Connection
    ) -> None:
        prefs = self._preferences(connection)
        if preference.key in prefs:
            raise CollaboratorError(
                f"Preference '{preference.key}' already exists",
                details={"key": preference.key},
                error_code="already_exists",
            )
        prefs[preference.key] = preference

    async def change_preference(
        self, preference: PartialPreference, connection: Connection
    ) -> None:
        prefs = self._preferences(connection)
        current = prefs.get(preference.key)
        if current is None:
            raise CollaboratorError(
                f"Preference '{preference.key}' does not exist",
                details={"key": preference.key},
                error_code="not_found",
            )
        prefs[preference.key] = Preference(
            key=current.key, value=preference.value, type=current.type
        )

    async def delete_preference(
        self, preference: PreferenceKey, connection: Connection
    ) -> None:
        prefs = self._preferences(connection)
        if preference.key not in prefs:
            raise CollaboratorError(
                f"Preference '{preference.key}' does not exist",
                details={"key": preference.key},
                error_code="not_found",
            )
        del prefs[preference.key]

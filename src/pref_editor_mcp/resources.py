"""
Resource view of the device/app/file/preference hierarchy.

The same hierarchy the tools expose is served as MCP resources:

    pref-editor://devices                                   -> devices
    pref-editor://{deviceId}                                -> apps
    pref-editor://{deviceId}/{appId}                        -> preference files
    pref-editor://{deviceId}/{appId}/{filename}             -> preferences
    pref-editor://{deviceId}/{appId}/{filename}/{preferenceKey} -> one preference

Reading a level lists its children: each child's URI is the parent URI
extended with the child's identifying field, and its text is that field
(preferences are rendered as JSON instead). Path segments are opaque; no
validation is applied beyond the template match.
"""

from __future__ import annotations

import re
from typing import Any

from pref_editor_mcp.backends import PreferenceBackend
from pref_editor_mcp.envelope import JSON_MIME_TYPE
from pref_editor_mcp.errors import NotFoundError
from pref_editor_mcp.logging import get_logger
from pref_editor_mcp.preferences import to_json, to_jsonable

logger = get_logger(__name__)

DEFAULT_SCHEME = "pref-editor"

_VARIABLE = re.compile(r"\{(\w+)\}")


class UriTemplate:
    """
    Minimal URI template with single-segment ``{name}`` variables.

    Example:
        >>> template = UriTemplate("pref-editor://{deviceId}/{appId}")
        >>> template.match("pref-editor://emulator-5554/com.example.app")
        {'deviceId': 'emulator-5554', 'appId': 'com.example.app'}
    """

    def __init__(self, template: str) -> None:
        self.template = template
        self.variables = _VARIABLE.findall(template)

        pattern = ""
        position = 0
        for m in _VARIABLE.finditer(template):
            pattern += re.escape(template[position : m.start()])
            pattern += f"(?P<{m.group(1)}>[^/]+)"
            position = m.end()
        pattern += re.escape(template[position:])
        self._regex = re.compile(f"^{pattern}$")

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the variables of a matching URI, or None."""
        m = self._regex.match(uri)
        return m.groupdict() if m else None

    def expand(self, **values: str) -> str:
        """Substitute variables into the template."""
        return _VARIABLE.sub(lambda m: str(values[m.group(1)]), self.template)

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"


def _single(value: str | list[str]) -> str:
    """Normalize a template variable to one string; the first value wins."""
    if isinstance(value, list):
        return value[0]
    return value


class ResourceRouter:
    """
    Serves the preference hierarchy as listable MCP resources.

    Attributes:
        backend: Preference backend the listings come from.
        scheme: URI scheme (default "pref-editor").
    """

    def __init__(
        self,
        backend: PreferenceBackend,
        scheme: str = DEFAULT_SCHEME,
    ) -> None:
        self.backend = backend
        self.scheme = scheme
        self.devices_uri = f"{scheme}://devices"
        self.apps_template = UriTemplate(f"{scheme}://{{deviceId}}")
        self.files_template = UriTemplate(f"{scheme}://{{deviceId}}/{{appId}}")
        self.preferences_template = UriTemplate(
            f"{scheme}://{{deviceId}}/{{appId}}/{{filename}}"
        )
        self.preference_template = UriTemplate(
            f"{scheme}://{{deviceId}}/{{appId}}/{{filename}}/{{preferenceKey}}"
        )

    # -------------------------------------------------------------------------
    # Listings for resources/list and resources/templates/list
    # -------------------------------------------------------------------------

    def resources(self) -> list[dict[str, Any]]:
        """Return the fixed resources."""
        return [
            {
                "uri": self.devices_uri,
                "name": "devices",
                "description": "Connected Android devices",
            }
        ]

    def templates(self) -> list[dict[str, Any]]:
        """Return the resource templates, outermost level first."""
        return [
            {
                "uriTemplate": self.apps_template.template,
                "name": "apps",
                "description": "Apps installed on a device",
            },
            {
                "uriTemplate": self.files_template.template,
                "name": "files",
                "description": "Preference files of an app",
            },
            {
                "uriTemplate": self.preferences_template.template,
                "name": "preferences",
                "description": "Preferences in a file",
                "mimeType": JSON_MIME_TYPE,
            },
            {
                "uriTemplate": self.preference_template.template,
                "name": "preference",
                "description": "A single preference",
                "mimeType": JSON_MIME_TYPE,
            },
        ]

    # -------------------------------------------------------------------------
    # resources/read
    # -------------------------------------------------------------------------

    async def read(self, uri: str) -> dict[str, Any]:
        """
        Read a resource URI.

        Args:
            uri: Resource URI.

        Returns:
            Dictionary with a "contents" list.

        Raises:
            NotFoundError: If the URI matches no level of the hierarchy, or
                names a preference key the file does not contain.
            Exception: Backend failures propagate unchanged.
        """
        if uri == self.devices_uri:
            contents = await self._read_devices()
        elif (match := self.preference_template.match(uri)) is not None:
            contents = await self._read_preference(uri, match)
        elif (match := self.preferences_template.match(uri)) is not None:
            contents = await self._read_preferences(uri, match)
        elif (match := self.files_template.match(uri)) is not None:
            contents = await self._read_files(uri, match)
        elif (match := self.apps_template.match(uri)) is not None:
            contents = await self._read_apps(uri, match)
        else:
            raise NotFoundError(f"Resource not found: {uri}", details={"uri": uri})

        logger.debug("Resource read", extra={"uri": uri, "items": len(contents)})
        return {"contents": contents}

    @staticmethod
    def _connection(match: dict[str, Any]) -> dict[str, str]:
        return {
            name: _single(match[name])
            for name in ("deviceId", "appId", "filename")
            if name in match
        }

    async def _read_devices(self) -> list[dict[str, Any]]:
        devices = await self.backend.list_devices()
        return [
            {"uri": self.apps_template.expand(deviceId=device.serial), "text": device.serial}
            for device in devices
        ]

    async def _read_apps(self, uri: str, match: dict[str, Any]) -> list[dict[str, Any]]:
        apps = await self.backend.list_apps(self._connection(match))
        return [
            {"uri": f"{uri}/{app.package_name}", "text": app.package_name}
            for app in apps
        ]

    async def _read_files(self, uri: str, match: dict[str, Any]) -> list[dict[str, Any]]:
        files = await self.backend.list_files(self._connection(match))
        return [{"uri": f"{uri}/{file.name}", "text": file.name} for file in files]

    async def _read_preferences(
        self, uri: str, match: dict[str, Any]
    ) -> list[dict[str, Any]]:
        records = await self.backend.read_preferences(self._connection(match))
        return [
            {
                "uri": f"{uri}/{to_jsonable(record).get('key', '')}",
                "mimeType": JSON_MIME_TYPE,
                "text": to_json(record),
            }
            for record in records
        ]

    async def _read_preference(
        self, uri: str, match: dict[str, Any]
    ) -> list[dict[str, Any]]:
        key = _single(match["preferenceKey"])
        records = await self.backend.read_preferences(self._connection(match))
        for record in records:
            if to_jsonable(record).get("key") == key:
                return [{"uri": uri, "mimeType": JSON_MIME_TYPE, "text": to_json(record)}]
        raise NotFoundError(
            f"Preference '{key}' not found",
            details={"uri": uri, "key": key},
        )

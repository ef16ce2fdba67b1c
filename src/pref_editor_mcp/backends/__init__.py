"""
Preference backends.

The server talks to devices only through a PreferenceBackend. The built-in
SandboxBackend keeps everything in memory; an external backend is any object
implementing the same operations, created by a factory named in the config.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

from pref_editor_mcp.backends.base import (
    AppInfo,
    Connection,
    DeviceInfo,
    FileInfo,
    PreferenceBackend,
)
from pref_editor_mcp.backends.sandbox import SandboxBackend
from pref_editor_mcp.logging import get_logger

if TYPE_CHECKING:
    from pref_editor_mcp.config import BackendConfig

logger = get_logger(__name__)

__all__ = [
    "AppInfo",
    "Connection",
    "DeviceInfo",
    "FileInfo",
    "PreferenceBackend",
    "SandboxBackend",
    "load_backend",
]


def _import_factory(path: str):
    """Resolve a "package.module:callable" path."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(
            f"Invalid backend factory '{path}'. Expected 'package.module:callable'"
        )
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Backend factory '{attr}' not found in {module_name}") from None


def load_backend(config: BackendConfig) -> PreferenceBackend:
    """
    Create the preference backend selected by the configuration.

    Args:
        config: Backend section of the AppConfig.

    Returns:
        A PreferenceBackend instance.

    Raises:
        ValueError: If the factory path is missing or malformed, or the
            factory returns something that is not a PreferenceBackend.
        ImportError: If the factory module cannot be imported.
        FileNotFoundError: If the sandbox data file does not exist.
    """
    if config.kind == "sandbox":
        if config.sandbox_data:
            return SandboxBackend.from_yaml(config.sandbox_data)
        return SandboxBackend()

    if not config.factory:
        raise ValueError("backend.factory is required when backend.kind is 'module'")

    backend = _import_factory(config.factory)()
    if not isinstance(backend, PreferenceBackend):
        raise ValueError(
            f"Backend factory '{config.factory}' returned {type(backend).__name__}, "
            "which does not implement PreferenceBackend"
        )
    logger.info("External backend loaded", extra={"factory": config.factory})
    return backend

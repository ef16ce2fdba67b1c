"""
Configuration management for the Pref-Editor MCP Server.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML config file (~/.config/pref-editor-mcp/config.yml or --config path)
3. Environment variables (PREF_EDITOR_MCP_* prefix, __ for nesting)
4. Command-line arguments (highest precedence)
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pref-editor-mcp" / "config.yml"

DEFAULT_ENV_PREFIX = "PREF_EDITOR_MCP_"

VALID_LOG_LEVELS = {"debug", "info", "warn", "warning", "error", "critical"}


def _normalize_log_level(v: str) -> str:
    """Validate a log level name and normalize 'warn' to 'warning'."""
    v_lower = v.lower()
    if v_lower not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {v}. Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
    if v_lower == "warn":
        return "warning"
    return v_lower


# =============================================================================
# Sections
# =============================================================================


class ServerConfig(BaseModel):
    """Server identity reported to MCP clients.

    Attributes:
        name: Server name returned from initialize.
        protocol_version: MCP protocol version offered to clients.
    """

    name: str = Field(
        default="Pref-Editor",
        description="Server name returned from initialize",
    )
    protocol_version: str = Field(
        default="2024-11-05",
        description="MCP protocol version offered to clients",
    )


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level.
        json_format: Whether to emit JSON log lines.
        log_to_stderr: Whether to log to stderr.
        debug_mode: Force DEBUG level regardless of `level`.
    """

    level: str = Field(
        default="info",
        description="Log level: debug, info, warning, error, critical",
    )
    json_format: bool = Field(
        default=True,
        description="Emit one JSON object per log line",
    )
    log_to_stderr: bool = Field(
        default=True,
        description="Whether to log to stderr (stdout carries the protocol)",
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable extra diagnostic logging",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        return _normalize_log_level(v)


class BackendConfig(BaseModel):
    """Preference backend selection.

    Attributes:
        kind: 'sandbox' for the in-memory backend, 'module' for an external one.
        factory: Import path of an external backend factory ("pkg.mod:callable").
        sandbox_data: Optional YAML file with initial sandbox contents.
    """

    kind: str = Field(
        default="sandbox",
        description="Backend kind: 'sandbox' or 'module'",
    )
    factory: str | None = Field(
        default=None,
        description="External backend factory, e.g. 'my_prefs.adb:create_backend'",
    )
    sandbox_data: str | None = Field(
        default=None,
        description="YAML file with the initial sandbox devices, apps and files",
    )

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Validate backend kind."""
        valid_kinds = {"sandbox", "module"}
        v_lower = v.lower()
        if v_lower not in valid_kinds:
            raise ValueError(
                f"Invalid backend kind: {v}. Must be one of: {', '.join(sorted(valid_kinds))}"
            )
        return v_lower


class ResourcesConfig(BaseModel):
    """Resource view configuration.

    Attributes:
        enabled: Whether the pref-editor:// resources are served.
    """

    enabled: bool = Field(
        default=True,
        description="Serve the device/app/file/preference hierarchy as resources",
    )


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main application configuration model.

    Attributes:
        server: Server identity settings.
        logging: Logging configuration.
        backend: Preference backend selection.
        resources: Resource view configuration.
    """

    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="Server settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    backend: BackendConfig = Field(
        default_factory=BackendConfig,
        description="Preference backend selection",
    )
    resources: ResourcesConfig = Field(
        default_factory=ResourcesConfig,
        description="Resource view configuration",
    )


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary with configuration values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to a Python value.

    Args:
        value: String value from environment variable.

    Returns:
        Parsed value (bool or string).
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False
    return value


def _load_env_config(prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Nested keys use a double underscore, e.g.
    PREF_EDITOR_MCP_BACKEND__KIND=module.

    Args:
        prefix: Environment variable prefix.

    Returns:
        Dictionary with configuration values.
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix) :].lower().split("__")

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = _parse_env_value(value)

    return result


def _parse_cli_args(args: list[str] | None = None) -> dict[str, Any]:
    """
    Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Dictionary with parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="pref-editor-mcp",
        description="Android shared preferences MCP server (stdio)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        help="Override log level",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    parser.add_argument(
        "--backend",
        type=str,
        help="External backend factory ('pkg.mod:callable'); implies kind=module",
    )
    parser.add_argument(
        "--sandbox-data",
        type=str,
        help="YAML file with initial sandbox contents",
    )

    parsed = parser.parse_args(args)

    result: dict[str, Any] = {}

    if parsed.config:
        result["_config_path"] = parsed.config

    if parsed.log_level:
        result["logging"] = {"level": parsed.log_level}

    if parsed.debug:
        result.setdefault("logging", {})
        result["logging"]["debug_mode"] = True
        result["logging"]["level"] = "debug"

    if parsed.backend:
        result["backend"] = {"kind": "module", "factory": parsed.backend}

    if parsed.sandbox_data:
        result.setdefault("backend", {})
        result["backend"]["sandbox_data"] = parsed.sandbox_data

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    cli_args: list[str] | None = None,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Later sources override earlier ones: defaults, YAML file, environment
    variables, command-line arguments.

    Args:
        config_path: Path to YAML configuration file. If None, uses the
            --config argument or the default path when it exists.
        env_prefix: Prefix for environment variables.
        cli_args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        pydantic.ValidationError: If configuration is invalid.

    Example:
        >>> config = load_config(cli_args=["--sandbox-data", "devices.yml"])
        >>> config.backend.kind
        'sandbox'
    """
    config_dict: dict[str, Any] = {}

    cli_config = _parse_cli_args(cli_args)

    if config_path is None:
        if "_config_path" in cli_config:
            config_path = Path(cli_config.pop("_config_path"))
        elif DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
    elif isinstance(config_path, str):
        config_path = Path(config_path)
    cli_config.pop("_config_path", None)

    if config_path is not None:
        config_dict = _deep_merge(config_dict, _load_yaml_config(config_path))

    config_dict = _deep_merge(config_dict, _load_env_config(env_prefix))
    config_dict = _deep_merge(config_dict, cli_config)

    return AppConfig(**config_dict)

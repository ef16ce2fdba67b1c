"""
Command-line entry point: run the Pref-Editor MCP Server on stdio.

Exit status is 0 when stdin closes normally and 1 when the configuration,
the backend or the stdio transport cannot be set up.
"""

from __future__ import annotations

import asyncio
import sys

import yaml
from pydantic import ValidationError

from pref_editor_mcp.backends import load_backend
from pref_editor_mcp.config import load_config
from pref_editor_mcp.errors import ToolError
from pref_editor_mcp.logging import get_logger, setup_logging
from pref_editor_mcp.server import create_server

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """
    Load configuration, create the backend and serve until stdin closes.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Process exit status.
    """
    try:
        config = load_config(cli_args=argv)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        sys.stderr.write(f"pref-editor-mcp: invalid configuration: {e}\n")
        return 1

    setup_logging(config.logging)

    try:
        backend = load_backend(config.backend)
    except (ImportError, ValueError, OSError, yaml.YAMLError, ToolError) as e:
        logger.error("Failed to create preference backend", extra={"error": str(e)})
        return 1

    server = create_server(config, backend)

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        return 0
    except (OSError, ValueError) as e:
        # connect_read_pipe rejects stdin that is not a pipe, socket or tty.
        logger.error("Failed to establish stdio transport", extra={"error": str(e)})
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

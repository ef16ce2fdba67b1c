"""
Pref-Editor MCP Server - Android shared preferences over the Model Context Protocol.

This package exposes the device -> app -> preference file -> preference hierarchy
as MCP tools and resources, validates tool arguments, and delegates all device
work to a preference backend.
"""

__version__ = "0.1.0"

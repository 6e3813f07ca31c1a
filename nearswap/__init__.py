"""NEAR Intent Swaps MCP server."""

__version__ = "0.1.0"

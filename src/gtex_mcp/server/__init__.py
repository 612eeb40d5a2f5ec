"""
GTEx MCP Server

Main entry point for the MCP server.
Exports the main() function for running the server.
"""

from gtex_mcp.server.core import (
    main,
    run,
    server,
    initialize_backend,
    cleanup_backend,
    handle_list_tools,
    handle_call_tool,
)

__all__ = [
    "main",
    "run",
    "server",
    "initialize_backend",
    "cleanup_backend",
    "handle_list_tools",
    "handle_call_tool",
]

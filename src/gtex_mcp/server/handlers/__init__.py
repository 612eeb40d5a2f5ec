"""
GTEx MCP Tool Handlers

Handlers are grouped by GTEx API area. Every handler is an async
function ``(client, params) -> ToolResult`` taking the shared client and
its tool's validated parameter model.
"""

from gtex_mcp.server.handlers import (
    association,
    expression,
    reference,
)

__all__ = [
    "association",
    "expression",
    "reference",
]

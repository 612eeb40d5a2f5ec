#!/usr/bin/env python3
"""
GTEx MCP Server - Core Infrastructure

Contains:
- Server initialization
- Tool listing handler
- Tool call router
- Backend lifecycle management
"""

import asyncio
import logging
import sys
from typing import Any, Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from gtex_mcp import __version__
from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.config import settings
from gtex_mcp.server.dispatch import dispatch

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.effective_log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    if settings.log_format == "text"
    else '{"time":"%(asctime)s","name":"%(name)s","level":"%(levelname)s","message":"%(message)s"}',
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)

# Initialize MCP server
server = Server(settings.mcp_server_name)

# Global state
_client: Optional[GTExClient] = None
_client_lock = asyncio.Lock()


async def initialize_backend():
    """Create the shared GTEx API client."""
    global _client

    async with _client_lock:
        if _client is not None:
            return

        logger.info("🚀 Starting GTEx MCP Server")
        logger.info(
            f"Configuration: api_base={settings.gtex_api_base}, "
            f"timeout={settings.gtex_timeout_seconds}s, "
            f"default_dataset={settings.default_dataset_id}"
        )

        _client = GTExClient.from_settings(settings)
        logger.info("✓ GTEx client initialized")
        logger.info("✓ Server initialization complete")


async def cleanup_backend():
    """Close the shared GTEx API client."""
    global _client

    logger.info("🛑 Shutting down GTEx MCP Server")

    async with _client_lock:
        if _client is not None:
            await _client.close()
            _client = None
    logger.info("✓ Connections closed")


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """
    List all available MCP tools.

    Tool definitions are in tools_registry module.
    Handler implementations are in server/handlers/.
    """
    from gtex_mcp.server.tools_registry import get_all_tools

    return get_all_tools()


@server.call_tool(validate_input=False)
async def handle_call_tool(
    name: str, arguments: dict[str, Any]
) -> types.CallToolResult:
    """
    Route tool calls to appropriate handler implementations.

    Input validation is done by each tool's pydantic model so that
    failures come back as a tool result instead of a protocol error.

    Args:
        name: Tool name (e.g., "get_gene_expression")
        arguments: Tool-specific parameters

    Returns:
        CallToolResult with a single text block
    """
    if _client is None:
        await initialize_backend()

    return await dispatch(_client, name, arguments)


async def main():
    """Main entry point."""
    logger.info("=" * 80)
    logger.info(f"GTEx MCP Server v{__version__} - GTEx Portal API v2")
    logger.info("=" * 80)
    logger.info("Transport: stdio")
    logger.info(f"Debug mode: {settings.debug_mode}")
    logger.info(f"Character limit: {settings.character_limit:,}")
    logger.info("=" * 80)

    try:
        # Initialize backend
        await initialize_backend()

        # Run server
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=settings.mcp_server_name,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await cleanup_backend()


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

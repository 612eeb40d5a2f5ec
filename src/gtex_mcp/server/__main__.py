"""
Entry point for running the GTEx MCP server as a module.

Usage:
    python -m gtex_mcp.server
"""

from gtex_mcp.server import main

if __name__ == "__main__":
    import asyncio
    asyncio.run(main())

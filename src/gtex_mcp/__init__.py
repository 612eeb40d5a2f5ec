"""
GTEx MCP Server

Model Context Protocol server for the GTEx Portal API v2.

Provides 33 read-only tools covering gene expression, eQTL/sQTL
associations, reference genomics and dataset metadata.
"""

__version__ = "1.0.0"
__author__ = "GTEx MCP Team"

# Lazy import to avoid MCP dependency for standalone usage
def __getattr__(name):
    if name == "server":
        from gtex_mcp.server import server
        return server
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["server", "__version__"]

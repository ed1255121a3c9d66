"""x402 discovery MCP server: search x402 resources and call them through a paying proxy."""

import asyncio

__version__ = "0.1.0"


def main():
    """Console entry point (x402-discovery-mcp)."""
    # Catalog path and transport come from argv / environment, see server.main
    from . import server
    asyncio.run(server.main())


__all__ = [
    "main",
    "__version__",
]

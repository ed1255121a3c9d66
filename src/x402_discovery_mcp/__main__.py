#!/usr/bin/env python3
"""
Entry point for running the x402 discovery MCP server package directly.
This allows the package to be executed as: python -m x402_discovery_mcp
"""

from . import main

if __name__ == "__main__":
    main()

"""
x402 Discovery MCP Server using FastMCP
Supports all transport methods: stdio, SSE, and streamable-http
"""
import argparse
import asyncio
import logging
import sys
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .catalog import CatalogLoader
from .config import ServerConfig
from .errors import LoadError
from .fnc_tools import (
    initialize_tools,
    handle_list_tools,
    handle_tool_call
)
from .proxy import ProxyInvoker

logger = logging.getLogger(__name__)

# Create FastMCP app
app = FastMCP("x402-discovery")


def current_request_meta() -> Optional[Any]:
    """_meta of the tool call being handled, or None outside a request."""
    try:
        return app._mcp_server.request_context.meta
    except LookupError:
        return None


async def call_tool(name: str, arguments: dict | None):
    return await handle_tool_call(name, arguments, current_request_meta())


# Set up the handlers using the internal MCP server
app._mcp_server.list_tools()(handle_list_tools)
app._mcp_server.call_tool(validate_input=False)(call_tool)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="x402 Discovery MCP Server")
    parser.add_argument("fixture_path", help="Path to the discovery catalog JSON fixture", nargs="?")
    return parser.parse_args(argv)


def initialize_catalog(config: ServerConfig) -> Optional[CatalogLoader]:
    """Load the discovery catalog. Returns None if it cannot be loaded."""
    catalog = CatalogLoader.get_instance(config.fixture_path)
    try:
        resources = catalog.load()
    except LoadError as e:
        logger.error(f"Could not load discovery catalog from {config.fixture_path}: {e}")
        return None
    logger.info(f"Discovery catalog ready with {len(resources)} resources (filter: '{config.resource_filter}')")
    return catalog


async def main(argv=None):
    """Main entry point for the server."""
    args = parse_args(argv)
    config = ServerConfig.from_environment(args.fixture_path)

    # Configure logging (stderr, so stdio transport stays clean)
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    catalog = initialize_catalog(config)
    if catalog is None:
        logger.error("Refusing to start without a discovery catalog")
        sys.exit(1)

    invoker = ProxyInvoker(catalog)
    initialize_tools(catalog, invoker, config.resource_filter)

    logger.info(f"MCP_TRANSPORT: {config.transport}")

    try:
        if config.transport == "sse":
            app.settings.host = config.host
            app.settings.port = config.port
            logger.info(f"Starting MCP server on {app.settings.host}:{app.settings.port}")
            await app.run_sse_async()
        elif config.transport == "streamable-http":
            app.settings.host = config.host
            app.settings.port = config.port
            app.settings.streamable_http_path = config.path
            logger.info(f"Starting MCP server on {app.settings.host}:{app.settings.port} with path {app.settings.streamable_http_path}")
            await app.run_streamable_http_async()
        else:
            logger.info("Starting MCP server on stdin/stdout")
            await app.run_stdio_async()
    finally:
        await invoker.aclose()


if __name__ == "__main__":
    asyncio.run(main())

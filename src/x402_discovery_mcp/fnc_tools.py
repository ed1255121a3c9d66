"""
MCP Tool Functions for x402 Discovery

This module connects the tool executor to the MCP server: it lists the two
visible tools and turns tool outputs into MCP CallToolResults, carrying the
x402 payment signals in structuredContent and _meta.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import mcp.types as types

from .catalog import CatalogLoader
from .errors import UpstreamError
from .proxy import ProxyInvoker
from .tools import ToolContext, ToolExecutor, ToolOutput
from .tools.search import SearchResourcesOutput
from .tools.system.proxy_tool_call import ProxyToolCallOutput
from .transforms import PAYMENT_META_KEY, UPSTREAM_ERROR_META_KEY

UPSTREAM_ERROR_CODE = "upstream_unreachable"

logger = logging.getLogger(__name__)

# Global variables
_catalog: Optional[CatalogLoader] = None
_invoker: Optional[ProxyInvoker] = None
_resource_filter = ""
_tool_executor: Optional[ToolExecutor] = None


def initialize_tools(catalog: CatalogLoader, invoker: ProxyInvoker, resource_filter: str):
    """
    Initialize the tool system.

    Args:
        catalog: Loaded discovery catalog
        invoker: Shared proxy invoker
        resource_filter: Deployment-time URL scope for search_resources
    """
    global _catalog, _invoker, _resource_filter, _tool_executor

    _catalog = catalog
    _invoker = invoker
    _resource_filter = resource_filter
    _tool_executor = ToolExecutor()

    tools = _tool_executor.discover_all_tools()
    logger.info(f"Registered {len(tools)} tools:")
    for tool_meta in tools:
        logger.info(f"  - {tool_meta.name}: {tool_meta.description}")


def format_text_response(text: str, is_error: bool = False) -> types.CallToolResult:
    """Format a plain text result."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


def format_tool_output(output: ToolOutput) -> types.CallToolResult:
    """Convert a tool output model into an MCP CallToolResult."""
    if isinstance(output, SearchResourcesOutput):
        structured = output.structured()
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=json.dumps(structured))],
            structuredContent=structured,
            isError=False,
        )

    if isinstance(output, ProxyToolCallOutput):
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=output.text or output.error or "")],
            structuredContent=output.structured_content,
            isError=not output.success,
            _meta=output.meta,
        )

    return format_text_response(output.error or "Error: Unknown error", is_error=not output.success)


def format_upstream_error(error: UpstreamError) -> types.CallToolResult:
    """Error result for a transport fault, kept apart from payment and caller errors."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"Error: {error}")],
        isError=True,
        _meta={
            UPSTREAM_ERROR_META_KEY: {
                "code": UPSTREAM_ERROR_CODE,
                "message": str(error),
            },
        },
    )


def extract_payment(meta: Any) -> Any:
    """Pull the x402/payment credential out of the call's _meta, if present."""
    if meta is None:
        return None
    if isinstance(meta, dict):
        data: Dict[str, Any] = meta
    else:
        data = meta.model_dump(by_alias=True)
    return data.get(PAYMENT_META_KEY)


async def handle_list_tools() -> List[types.Tool]:
    """List the visible tools: search_resources and proxy_tool_call."""
    if not _tool_executor:
        logger.warning("Tool executor not initialized")
        return []

    mcp_tools = []
    for meta in _tool_executor.discover_all_tools():
        tool_class = _tool_executor.load_tool(meta.name)
        if tool_class:
            mcp_tools.append(types.Tool.model_validate(tool_class.to_mcp_tool()))
    return mcp_tools


async def handle_tool_call(
    name: str,
    arguments: Optional[dict],
    meta: Any = None
) -> types.CallToolResult:
    """
    Handle tool execution.

    Args:
        name: Tool name
        arguments: Tool arguments
        meta: The call's _meta (carries x402/payment)

    Returns:
        Tool execution result. An unreachable upstream comes back as an
        error result tagged with _meta["x402/upstream-error"].
    """
    logger.info(f"Tool call: {name}")

    if not _tool_executor:
        logger.error("Tool executor not initialized")
        return format_text_response("Error: Tool system not initialized", is_error=True)

    context = ToolContext(
        catalog=_catalog,
        invoker=_invoker,
        resource_filter=_resource_filter,
        payment=extract_payment(meta),
    )

    try:
        output = await _tool_executor.execute_tool(
            tool_name=name,
            arguments=arguments or {},
            context=context
        )
    except UpstreamError as e:
        logger.error(f"Upstream failure while executing {name}: {e}")
        return format_upstream_error(e)

    return format_tool_output(output)


def get_tool_executor() -> Optional[ToolExecutor]:
    """Get the global tool executor instance."""
    return _tool_executor

"""
x402 Discovery Tools

Only two tools are visible to the agent:
- search_resources discovers catalog resources as tool descriptors
- proxy_tool_call executes a discovered tool against its HTTP resource

Architecture:
- Each tool is a ToolBase subclass with typed interfaces (Pydantic models)
- The ToolExecutor validates arguments and dispatches to the tool
- Discovered x402 tools are never registered; they are reached through the proxy
"""

from .base import ToolBase, ToolContext, ToolMetadata, ToolInput, ToolOutput
from .executor import ToolExecutor
from .search import SearchResourcesTool
from .system import ProxyToolCallTool

__all__ = [
    "ToolBase",
    "ToolContext",
    "ToolMetadata",
    "ToolInput",
    "ToolOutput",
    "ToolExecutor",
    "SearchResourcesTool",
    "ProxyToolCallTool",
]

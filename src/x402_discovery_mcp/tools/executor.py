"""
Tool Executor - Registers and executes the server's tools.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from .base import ToolBase, ToolContext, ToolMetadata, ToolOutput
from .search import SearchResourcesTool
from .system import ProxyToolCallTool

logger = logging.getLogger(__name__)

DEFAULT_TOOLS: Sequence[Type[ToolBase]] = (SearchResourcesTool, ProxyToolCallTool)


class ToolExecutor:
    """
    Manages the registered tools and executes them.

    Features:
    - Fixed registry of tool classes, in registration order
    - Input validation against each tool's InputSchema
    - Caller input problems returned as failed ToolOutputs
    """

    def __init__(self, tools: Optional[Sequence[Type[ToolBase]]] = None):
        """
        Initialize the tool executor.

        Args:
            tools: Tool classes to register (defaults to search_resources + proxy_tool_call)
        """
        self._tools: Dict[str, Type[ToolBase]] = {}
        for tool_class in tools or DEFAULT_TOOLS:
            self._tools[tool_class.METADATA.name] = tool_class

    def discover_all_tools(self) -> List[ToolMetadata]:
        """Return metadata of all registered tools."""
        return [tool_class.METADATA for tool_class in self._tools.values()]

    def load_tool(self, tool_name: str) -> Optional[Type[ToolBase]]:
        """
        Look up a tool by name.

        Returns:
            Tool class or None if not found
        """
        tool_class = self._tools.get(tool_name)
        if tool_class is None:
            logger.warning(f"Tool not found: {tool_name}")
        return tool_class

    async def execute_tool(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        context: ToolContext
    ) -> ToolOutput:
        """
        Validate arguments and execute a tool.

        Upstream and catalog failures are not caught here.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool input arguments
            context: Execution context

        Returns:
            Tool output model
        """
        tool_class = self.load_tool(tool_name)
        if not tool_class:
            return ToolOutput(
                success=False,
                error=f"Error: Unknown tool: {tool_name}"
            )

        try:
            input_data = tool_class.InputSchema.model_validate(arguments)
        except PydanticValidationError as e:
            logger.warning(f"Invalid arguments for {tool_name}: {e}")
            return ToolOutput(
                success=False,
                error=f"Error: invalid arguments for {tool_name}: {e}"
            )

        try:
            return await tool_class().execute(input_data, context)
        except ValidationError as e:
            logger.warning(f"Rejected input for {tool_name}: {e}")
            return ToolOutput(success=False, error=f"Error: {e}")

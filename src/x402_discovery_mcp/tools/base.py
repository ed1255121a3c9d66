"""
Base classes and types for the x402 discovery tools.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field


class ToolMetadata(BaseModel):
    """Metadata describing a tool."""
    name: str = Field(..., description="Unique identifier for the tool")
    title: str = Field(default="", description="Short human-readable title")
    description: str = Field(..., description="Human-readable description of what the tool does")
    meta: Dict[str, Any] = Field(default_factory=dict, description="Namespaced _meta advertised with the tool")
    version: str = Field(default="1.0.0", description="Tool version")


class ToolInput(BaseModel):
    """Base class for tool input schemas. Accepts the camelCase wire names."""
    model_config = ConfigDict(populate_by_name=True)


class ToolOutput(BaseModel):
    """Base class for tool output schemas."""
    success: bool = Field(default=True, description="Whether the tool execution was successful")
    error: Optional[str] = Field(default=None, description="Error message if execution failed")


TInput = TypeVar('TInput', bound=ToolInput)
TOutput = TypeVar('TOutput', bound=ToolOutput)


class ToolContext(BaseModel):
    """Context passed to tool execution."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    catalog: Any = Field(exclude=True)  # CatalogLoader
    invoker: Any = Field(default=None, exclude=True)  # ProxyInvoker
    resource_filter: str = ""
    payment: Any = None  # x402/payment call metadata, if any


class ToolBase(ABC):
    """
    Base class for the tools exposed by the server.

    Each tool should:
    1. Define METADATA as a class attribute
    2. Define InputSchema and OutputSchema as nested classes
    3. Implement the execute() method
    """

    METADATA: ToolMetadata

    @abstractmethod
    async def execute(self, input_data: TInput, context: ToolContext) -> TOutput:
        """
        Execute the tool with given input and context.

        Args:
            input_data: Validated input matching InputSchema
            context: Catalog, proxy invoker and call metadata

        Returns:
            Output matching OutputSchema
        """
        pass

    @classmethod
    def get_input_schema(cls) -> Dict[str, Any]:
        """Get JSON Schema for tool input."""
        return cls.InputSchema.model_json_schema(by_alias=True)

    @classmethod
    def get_output_schema(cls) -> Optional[Dict[str, Any]]:
        """Get JSON Schema for the structured tool output, if the tool declares one."""
        return None

    @classmethod
    def get_metadata(cls) -> ToolMetadata:
        """Get tool metadata."""
        return cls.METADATA

    @classmethod
    def to_mcp_tool(cls) -> Dict[str, Any]:
        """Convert to MCP tool format."""
        tool = {
            "name": cls.METADATA.name,
            "description": cls.METADATA.description,
            "inputSchema": cls.get_input_schema(),
        }
        if cls.METADATA.title:
            tool["title"] = cls.METADATA.title
        output_schema = cls.get_output_schema()
        if output_schema is not None:
            tool["outputSchema"] = output_schema
        if cls.METADATA.meta:
            tool["_meta"] = cls.METADATA.meta
        return tool

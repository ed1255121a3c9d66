"""
Search Resources Tool - Discover x402 resources as callable tools.

Agents call search_resources to list the payment-protected HTTP resources
of the catalog as tool descriptors, then execute one of them through
proxy_tool_call with a payment attached in the x402/payment call metadata.
"""

from typing import Any, Dict, List, Optional
from pydantic import ConfigDict, Field

from ..filters import filter_by_domain, filter_by_query, paginate
from ..models import PaginationState
from ..transforms import resource_to_tool
from .base import ToolBase, ToolContext, ToolInput, ToolOutput, ToolMetadata

DEFAULT_X402_VERSION = 1


class SearchResourcesInput(ToolInput):
    """Input schema for search_resources."""
    search_query: Optional[str] = Field(
        default=None,
        alias="searchQuery",
        description="Search string for filtering resources"
    )
    limit: Optional[int] = Field(
        default=None,
        description="Optional pagination limit"
    )
    offset: Optional[int] = Field(
        default=None,
        description="Optional pagination offset"
    )


class SearchResourcesOutput(ToolOutput):
    """Output schema for search_resources."""
    model_config = ConfigDict(populate_by_name=True)

    pagination: PaginationState = Field(default_factory=PaginationState)
    x402_version: int = Field(default=DEFAULT_X402_VERSION, alias="x402Version")
    tools: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Tool descriptors for the matching resources"
    )

    def structured(self) -> Dict[str, Any]:
        """Structured content as sent to the agent."""
        return {
            "pagination": self.pagination.model_dump(exclude_none=True),
            "x402Version": self.x402_version,
            "tools": self.tools,
        }


SEARCH_RESOURCES_OUTPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "pagination": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer"},
                "offset": {"type": "integer"},
                "total": {"type": "integer"},
            },
            "additionalProperties": False,
        },
        "x402Version": {"type": "integer"},
        "tools": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "_meta": {"type": "object", "additionalProperties": True},
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "inputSchema": {"type": "object", "additionalProperties": True},
                    "outputSchema": {"type": "object", "additionalProperties": True},
                    "title": {"type": "string"},
                    "annotations": {"type": "object", "additionalProperties": True},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


class SearchResourcesTool(ToolBase):
    """
    Lists catalog resources as x402 tool descriptors.

    Examples:
    - Everything in scope: {}
    - Weather resources, first page: {"searchQuery": "weather", "limit": 5}
    - Next page: {"searchQuery": "weather", "limit": 5, "offset": 5}
    """

    METADATA = ToolMetadata(
        name="search_resources",
        title="Search x402 Tools",
        description=(
            "Discover additional x402 tools you can use. Use searchQuery to filter by text. "
            "After discovery, execute a returned tool via proxy_tool_call with a payment "
            "attached in meta x402/payment."
        ),
        meta={
            "x402/usage": {
                "step": "discover",
                "next": "proxy_tool_call",
            },
        },
    )

    class InputSchema(SearchResourcesInput):
        pass

    class OutputSchema(SearchResourcesOutput):
        pass

    @classmethod
    def get_output_schema(cls) -> Dict[str, Any]:
        return SEARCH_RESOURCES_OUTPUT_SCHEMA

    async def execute(self, input_data: SearchResourcesInput, context: ToolContext) -> SearchResourcesOutput:
        """
        Filter, page and convert the catalog.

        Args:
            input_data: Search parameters
            context: Execution context (contains the catalog)

        Returns:
            Page of tool descriptors plus pagination
        """
        resources = filter_by_domain(context.catalog.load(), context.resource_filter)
        filtered = filter_by_query(resources, input_data.search_query)
        page, pagination = paginate(filtered, input_data.limit, input_data.offset)

        tools = []
        for resource in page:
            tool = resource_to_tool(resource)
            if tool is not None:
                tools.append(tool.to_wire())

        x402_version = filtered[0].x402_version if filtered else DEFAULT_X402_VERSION

        return SearchResourcesOutput(
            success=True,
            pagination=pagination,
            x402_version=x402_version,
            tools=tools,
        )

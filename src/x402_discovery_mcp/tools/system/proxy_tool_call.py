"""
Proxy Tool Call - Universal executor for discovered x402 tools.

This tool implements the "execute proxy" pattern for x402 resources:
- search_resources discovers tools synthesized from the catalog
- proxy_tool_call routes execution of any of them to its HTTP resource
- The payment credential travels in the call metadata (x402/payment)
"""

from typing import Any, Dict, Optional
from pydantic import ConfigDict, Field
import logging

from ..base import ToolBase, ToolContext, ToolInput, ToolOutput, ToolMetadata

logger = logging.getLogger(__name__)


class ProxyToolCallInput(ToolInput):
    """Input schema for proxy_tool_call."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"required": ["toolName"]},
    )

    tool_name: str = Field(
        default="",
        alias="toolName",
        description="Tool name to proxy (discover tools first with search_resources)"
    )
    parameters: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Tool parameters for the proxied call: query, headers and body"
    )


class ProxyToolCallOutput(ToolOutput):
    """Output schema for proxy_tool_call."""
    text: str = Field(
        default="",
        description="Response envelope (status, headers, body) or payment-required payload as JSON"
    )
    structured_content: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Decoded payment-required envelope, when the resource asked for payment"
    )
    meta: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Side-channel metadata such as x402/payment-response"
    )


class ProxyToolCallTool(ToolBase):
    """
    Executes a discovered x402 tool by proxying it to its HTTP resource.

    Example Workflow:
    ```python
    # Step 1: Discover tools
    search_resources({"searchQuery": "weather"})
    # Returns: {"tools": [{"name": "x402_get_http_localhost_8080_weather_1a2b3c4d", ...}]}

    # Step 2: Call it, paying via _meta["x402/payment"]
    proxy_tool_call({
        "toolName": "x402_get_http_localhost_8080_weather_1a2b3c4d",
        "parameters": {"query": {"city": "San Francisco"}}
    })
    # Returns: {"status": 200, "headers": {...}, "body": "{...}"}
    # or an error result carrying the payment-required envelope
    ```
    """

    METADATA = ToolMetadata(
        name="proxy_tool_call",
        title="Execute x402 Tool",
        description=(
            "Executes a discovered x402 tool. Provide toolName and parameters. "
            "Use search_resources to discover available tools."
        ),
        meta={
            "x402/usage": {
                "step": "execute",
                "via": "proxy_tool_call",
            },
        },
    )

    class InputSchema(ProxyToolCallInput):
        pass

    class OutputSchema(ProxyToolCallOutput):
        pass

    async def execute(
        self,
        input_data: ProxyToolCallInput,
        context: ToolContext
    ) -> ProxyToolCallOutput:
        """
        Proxy the call through the context's ProxyInvoker.

        Args:
            input_data: Tool name and parameters
            context: Execution context with invoker and payment metadata

        Returns:
            Result of the proxied HTTP call

        Raises:
            UpstreamError: the resource could not be reached
        """
        tool_name = input_data.tool_name
        if not tool_name:
            return ProxyToolCallOutput(
                success=False,
                error="Error: 'toolName' parameter is required."
            )

        logger.info(f"proxy_tool_call routing to: {tool_name} (payment attached: {context.payment is not None})")

        result = await context.invoker.invoke(
            tool_name,
            input_data.parameters,
            context.payment,
        )

        return ProxyToolCallOutput(
            success=not result.is_error,
            error=result.text if result.is_error else None,
            text=result.text,
            structured_content=result.structured_content,
            meta=result.meta,
        )

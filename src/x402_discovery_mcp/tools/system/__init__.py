"""
System Tools Package

Contains the meta-tool for executing discovered x402 tools:
- proxy_tool_call: Universal executor for tools found via search_resources
"""

from .proxy_tool_call import ProxyToolCallTool

__all__ = ['ProxyToolCallTool']

# src/x402_discovery_mcp/config.py
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

DEFAULT_FIXTURE_PATH = Path(__file__).parent / "fixtures" / "x402-endpoints.json"

# Deployment-time scope for the catalog. Only resources whose URL contains
# this pattern are offered to agents.
DEFAULT_RESOURCE_FILTER = "/weather"

SUPPORTED_TRANSPORTS = ("stdio", "sse", "streamable-http")


@dataclass
class ServerConfig:
    """Runtime configuration for the x402 discovery MCP server"""
    # Transport settings
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000
    path: str = "/discovery/mcp"

    # Catalog settings
    fixture_path: Path = DEFAULT_FIXTURE_PATH
    resource_filter: str = DEFAULT_RESOURCE_FILTER

    log_level: str = "INFO"

    def __post_init__(self):
        self.transport = self.transport.lower()
        if self.transport not in SUPPORTED_TRANSPORTS:
            raise ValueError(
                f"Unsupported MCP_TRANSPORT '{self.transport}', expected one of {', '.join(SUPPORTED_TRANSPORTS)}"
            )
        self.fixture_path = Path(self.fixture_path)
        self.log_level = self.log_level.upper()

    @classmethod
    def from_environment(cls, fixture_path: Optional[str] = None) -> "ServerConfig":
        """Create configuration from environment variables.

        An explicit fixture_path (e.g. from the command line) wins over
        X402_FIXTURE_PATH.
        """
        return cls(
            transport=os.getenv("MCP_TRANSPORT", "stdio"),
            host=os.getenv("MCP_HOST", "127.0.0.1"),
            port=int(os.getenv("MCP_PORT", "8000")),
            path=os.getenv("MCP_PATH", "/discovery/mcp"),
            fixture_path=fixture_path or os.getenv("X402_FIXTURE_PATH") or DEFAULT_FIXTURE_PATH,
            resource_filter=os.getenv("X402_RESOURCE_FILTER", DEFAULT_RESOURCE_FILTER),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

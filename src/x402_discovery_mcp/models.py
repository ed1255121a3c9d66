"""
Data model for x402 discovery resources and the MCP tools synthesized from them.

Field names follow Python conventions; the camelCase x402/MCP wire names are
kept as aliases so catalog fixtures and tool payloads round-trip unchanged.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class X402Model(BaseModel):
    """Base model accepting both wire aliases and field names."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class PaymentRequirement(X402Model):
    """One accepted payment option for a resource."""
    scheme: str = Field(default="", description="Payment scheme, e.g. 'exact'")
    network: str = Field(default="", description="Chain/network identifier")
    asset: str = Field(default="", description="Token identifier")
    pay_to: str = Field(default="", alias="payTo", description="Recipient identifier")
    max_amount_required: str = Field(
        default="",
        alias="maxAmountRequired",
        description="Decimal string in the asset's smallest unit"
    )
    max_timeout_seconds: int = Field(default=0, alias="maxTimeoutSeconds")
    mime_type: str = Field(default="", alias="mimeType")
    description: str = ""
    resource: str = ""
    extra: Optional[Dict[str, Any]] = None
    output_schema: Optional[Dict[str, Any]] = Field(default=None, alias="outputSchema")

    def input_descriptor(self) -> Optional[Dict[str, Any]]:
        """Return the embedded outputSchema.input descriptor, if any."""
        if not isinstance(self.output_schema, dict):
            return None
        descriptor = self.output_schema.get("input")
        return descriptor if isinstance(descriptor, dict) else None


class DiscoveryResource(X402Model):
    """One payment-protected HTTP endpoint from the discovery catalog."""
    resource: str = Field(..., description="Absolute URL, unique within the catalog")
    type: str = ""
    x402_version: int = Field(default=1, alias="x402Version")
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")
    accepts: List[PaymentRequirement] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("accepts", mode="before")
    @classmethod
    def _null_accepts(cls, value):
        return [] if value is None else value

    def metadata_input(self) -> Optional[Dict[str, Any]]:
        """Fallback input descriptor carried in metadata.input."""
        if not self.metadata:
            return None
        descriptor = self.metadata.get("input")
        return descriptor if isinstance(descriptor, dict) else None


class ToolDescriptor(X402Model):
    """Agent-facing tool synthesized from a discovery resource. Never persisted."""
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    meta: Dict[str, Any] = Field(default_factory=dict, alias="_meta")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with MCP wire names (inputSchema, _meta)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PaginationState(BaseModel):
    """Pagination echoed back by search_resources."""
    limit: Optional[int] = None
    offset: Optional[int] = None
    total: int = 0

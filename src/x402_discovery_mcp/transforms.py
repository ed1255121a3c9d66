"""
Discovery resource to MCP tool translation.

Each HTTP discovery resource becomes one agent-facing tool whose name is a
pure function of (HTTP method, resource URL). Agents never call these tools
directly; they call proxy_tool_call with the tool name, and the proxy
recomputes the name to find the resource again.
"""

import hashlib
import logging
import re
from typing import Any, Dict, Optional, Tuple

from .models import DiscoveryResource, PaymentRequirement, ToolDescriptor

logger = logging.getLogger(__name__)

PROXY_TOOL_NAME = "proxy_tool_call"

PAYMENT_REQUIRED_META_KEY = "x402/payment-required"
PAYMENT_RESPONSE_META_KEY = "x402/payment-response"
PAYMENT_META_KEY = "x402/payment"
CALL_WITH_META_KEY = "x402/call-with"
UPSTREAM_ERROR_META_KEY = "x402/upstream-error"

PROXY_HINT = f"Use {PROXY_TOOL_NAME} with payment to execute."

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


def sanitize_tool_name(value: str) -> str:
    """Lowercase, replace anything outside [a-z0-9] with '_', trim underscores."""
    sanitized = _UNSAFE_CHARS.sub("_", value.lower()).strip("_")
    return sanitized or "resource"


def tool_name_from_resource(resource_url: str, method: str) -> str:
    """
    Build the deterministic tool name for (method, url).

    Format: x402_{method_}{sanitized_url}_{hash8}, where hash8 is the first
    4 bytes of SHA-1 over "method:url". An empty method gives no prefix.
    """
    method_prefix = ""
    if method:
        method_prefix = sanitize_tool_name(method.lower()) + "_"
    digest = hashlib.sha1(f"{method}:{resource_url}".encode("utf-8")).hexdigest()[:8]
    return f"x402_{method_prefix}{sanitize_tool_name(resource_url)}_{digest}"


def method_from_input(descriptor: Optional[Dict[str, Any]]) -> str:
    """Upper-cased HTTP method from an input descriptor, or ''."""
    if not descriptor:
        return ""
    method = descriptor.get("method")
    if isinstance(method, str) and method:
        return method.upper()
    return ""


def extract_accepts_metadata(resource: DiscoveryResource) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Return (description, input descriptor) from the first payment requirement
    that carries either of them.
    """
    for requirement in resource.accepts:
        descriptor = requirement.input_descriptor()
        if requirement.description or descriptor is not None:
            return requirement.description, descriptor
    return "", None


def resolve_method(resource: DiscoveryResource) -> str:
    """HTTP method from accepts[].outputSchema.input, falling back to metadata.input."""
    _, descriptor = extract_accepts_metadata(resource)
    method = method_from_input(descriptor)
    if not method:
        method = method_from_input(resource.metadata_input())
    return method


def is_tool_eligible(resource: DiscoveryResource) -> bool:
    return resource.type.lower() == "http"


def tool_name_for(resource: DiscoveryResource) -> str:
    """Recompute the tool name a resource is published under."""
    return tool_name_from_resource(resource.resource, resolve_method(resource))


def resource_to_tool(resource: DiscoveryResource) -> Optional[ToolDescriptor]:
    """
    Convert a discovery resource into a tool descriptor.

    Returns None for non-HTTP resources.
    """
    if not is_tool_eligible(resource):
        return None

    description = f"Proxy call to {resource.resource}"
    accepts_description, descriptor = extract_accepts_metadata(resource)
    if accepts_description:
        description = accepts_description
    elif resource.metadata:
        meta_description = resource.metadata.get("description")
        if isinstance(meta_description, str) and meta_description:
            description = meta_description

    if descriptor is None:
        descriptor = resource.metadata_input()

    description = f"{description.strip()} {PROXY_HINT}"

    name = tool_name_for(resource)
    meta = build_pricing_meta(resource, description, name)
    meta[CALL_WITH_META_KEY] = {"tool": PROXY_TOOL_NAME}

    return ToolDescriptor(
        name=name,
        description=description,
        input_schema=build_input_schema(resource, descriptor),
        meta=meta,
    )


def _string_properties(raw: Dict[str, Any]) -> Dict[str, Any]:
    properties = {}
    for key, value in raw.items():
        prop: Dict[str, Any] = {"type": "string"}
        if value is not None:
            prop["description"] = str(value)
        properties[key] = prop
    return properties


def build_input_schema(resource: DiscoveryResource, descriptor: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    JSON schema for the proxied call: a single ``parameters`` object with
    optional query, headers and body members.
    """
    parameters_props: Dict[str, Any] = {}
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "parameters": {
                "type": "object",
                "properties": parameters_props,
            },
        },
    }

    method = method_from_input(descriptor)
    if method:
        schema["description"] = f"HTTP {method} to {resource.resource}"

    if descriptor:
        query_params = descriptor.get("queryParams")
        if isinstance(query_params, dict) and query_params:
            parameters_props["query"] = {
                "type": "object",
                "additionalProperties": False,
                "description": "Query parameters to include on the request.",
                "properties": _string_properties(query_params),
            }

        headers = descriptor.get("headers")
        if isinstance(headers, dict) and headers:
            parameters_props["headers"] = {
                "type": "object",
                "additionalProperties": False,
                "description": "Additional headers to include on the request.",
                "properties": _string_properties(headers),
            }

        if "body" in descriptor:
            parameters_props["body"] = {
                "description": "JSON body to include on the request.",
            }

    if parameters_props:
        schema["required"] = ["parameters"]

    return schema


def _accept_entry(requirement: PaymentRequirement) -> Dict[str, Any]:
    return {
        "scheme": requirement.scheme or None,
        "network": requirement.network or None,
        "amount": requirement.max_amount_required or None,
        "asset": requirement.asset or None,
        "payTo": requirement.pay_to or None,
        "maxTimeoutSeconds": requirement.max_timeout_seconds or None,
        "extra": requirement.extra or None,
    }


def build_pricing_meta(resource: DiscoveryResource, description: str, tool_name: str) -> Dict[str, Any]:
    """Namespaced payment-required descriptor for priced resources; {} for free ones."""
    if not resource.accepts:
        return {}

    resource_meta: Dict[str, Any] = {
        "url": f"tool://{tool_name}",
        "description": description,
    }
    mime_type = next((r.mime_type for r in resource.accepts if r.mime_type), "")
    if mime_type:
        resource_meta["mimeType"] = mime_type

    return {
        PAYMENT_REQUIRED_META_KEY: {
            "x402Version": resource.x402_version,
            "resource": resource_meta,
            "accepts": [_accept_entry(requirement) for requirement in resource.accepts],
        }
    }

"""
Proxy Invoker - Executes a discovered x402 tool against its HTTP resource.

Flow for one proxy_tool_call:
1. Encode the optional payment credential into the version-specific header
2. Resolve the tool name back to its discovery resource
3. Build the HTTP request from the caller's query/headers/body parameters
4. Send it with a fixed timeout and a capped body read
5. Translate the response, surfacing payment-required and settlement envelopes

Caller and protocol problems come back as error-flagged ProxyResults the
agent can inspect. Only network failures raise (UpstreamError). Nothing is
retried here; paying and resubmitting is the agent's job.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import BaseModel

from .catalog import CatalogLoader
from .errors import EncodeError, NotFoundError, PaymentMetaError, UpstreamError, ValidationError
from .models import DiscoveryResource
from .payment import (
    decode_payment_required,
    decode_payment_response,
    encode_payment_header,
    parse_payment_credential,
)
from .transforms import (
    PAYMENT_REQUIRED_META_KEY,
    PAYMENT_RESPONSE_META_KEY,
    is_tool_eligible,
    resolve_method,
    tool_name_for,
)

logger = logging.getLogger(__name__)

# Fixed policy, not tunable per call
PROXY_TIMEOUT_SECONDS = 30.0
MAX_PROXY_RESPONSE_BYTES = 1 << 20  # 1 MiB


class ProxyResult(BaseModel):
    """Outcome of a proxied call, in tool-result shape."""
    is_error: bool = False
    text: str = ""
    structured_content: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None

    @classmethod
    def error(cls, message: str) -> "ProxyResult":
        return cls(is_error=True, text=message)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def inject_payment(parameters: Optional[Dict[str, Any]], payment: Any) -> Dict[str, Any]:
    """
    Return a copy of ``parameters`` with the payment header merged into
    ``headers``. A header of the same name already supplied by the caller is
    kept.

    Raises:
        PaymentMetaError: bad credential or non-object headers
        EncodeError: credential version cannot be determined
    """
    credential = parse_payment_credential(payment)
    header = encode_payment_header(credential)

    params = dict(parameters or {})
    if "headers" in params:
        headers = params["headers"]
        if not isinstance(headers, dict):
            raise PaymentMetaError(f"headers must be an object to set {header.name}")
        headers = dict(headers)
    else:
        headers = {}

    # Header names are case-insensitive; any spelling supplied by the caller wins
    if header.name.lower() not in {str(key).lower() for key in headers}:
        headers[header.name] = header.value
    params["headers"] = headers

    logger.debug(f"Attached {header.name} header for x402 v{header.version} payment")
    return params


def request_method(resource: DiscoveryResource) -> str:
    """HTTP method for a resource, defaulting to GET."""
    return resolve_method(resource) or "GET"


def translate_response(
    status_code: int,
    headers: httpx.Headers,
    body: bytes
) -> ProxyResult:
    """
    Convert an upstream HTTP response into a ProxyResult.

    A decodable payment-required envelope takes priority over the body.
    """
    payment_required = decode_payment_required(status_code, headers, body)
    if payment_required is not None:
        return ProxyResult(
            is_error=True,
            text=json.dumps(payment_required),
            structured_content=payment_required,
            meta={PAYMENT_REQUIRED_META_KEY: payment_required},
        )

    header_map: Dict[str, List[str]] = {}
    for key, value in headers.multi_items():
        header_map.setdefault(key, []).append(value)

    payload = {
        "status": status_code,
        "headers": header_map,
        "body": body.decode("utf-8", errors="replace"),
    }

    result = ProxyResult(
        is_error=status_code >= 400,
        text=json.dumps(payload, indent=2),
    )

    payment_response = decode_payment_response(headers)
    if payment_response is not None:
        result.meta = {PAYMENT_RESPONSE_META_KEY: payment_response}

    return result


class ProxyInvoker:
    """
    Proxies tool calls to x402 HTTP resources.

    The httpx client is shared by all invocations and may be injected
    (e.g. with an httpx.MockTransport in tests).
    """

    def __init__(
        self,
        catalog: CatalogLoader,
        client: Optional[httpx.AsyncClient] = None,
        max_response_bytes: int = MAX_PROXY_RESPONSE_BYTES
    ):
        self.catalog = catalog
        self.timeout = httpx.Timeout(PROXY_TIMEOUT_SECONDS)
        self.max_response_bytes = max_response_bytes
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def aclose(self):
        """Close the shared HTTP client if this invoker created it."""
        if self._owns_client:
            await self._client.aclose()

    def resolve(self, tool_name: str) -> DiscoveryResource:
        """
        Find the resource published under ``tool_name``.

        Raises:
            NotFoundError: no tool-eligible resource has that name
        """
        for resource in self.catalog.load():
            if not is_tool_eligible(resource):
                continue
            if tool_name_for(resource) == tool_name:
                return resource
        raise NotFoundError(f'tool "{tool_name}" not found')

    def build_request(self, resource: DiscoveryResource, parameters: Optional[Mapping[str, Any]]) -> httpx.Request:
        """
        Build the upstream request.

        Raises:
            ValidationError: malformed URL, query, headers or body
        """
        parameters = parameters or {}
        method = request_method(resource)

        try:
            url = httpx.URL(resource.resource)
        except httpx.InvalidURL as e:
            raise ValidationError(f"invalid resource url: {e}") from e

        query = parameters.get("query")
        if query is not None:
            if not isinstance(query, Mapping):
                raise ValidationError("query must be an object")
            url = url.copy_merge_params({key: _stringify(value) for key, value in query.items()})

        content = None
        body = parameters.get("body")
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise ValidationError(f"invalid body payload: {e}") from e
            if method == "GET":
                method = "POST"

        headers = httpx.Headers({"Accept": "application/json"})
        if content is not None:
            headers["Content-Type"] = "application/json"

        caller_headers = parameters.get("headers")
        if caller_headers is not None:
            if not isinstance(caller_headers, Mapping):
                raise ValidationError("headers must be an object")
            for key, value in caller_headers.items():
                headers[key] = _stringify(value)

        return self._client.build_request(
            method,
            url,
            headers=headers,
            content=content,
            timeout=self.timeout,
        )

    async def _read_capped(self, response: httpx.Response) -> bytes:
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk[:self.max_response_bytes - len(buffer)])
            if len(buffer) >= self.max_response_bytes:
                logger.warning(f"Proxy response from {response.url} truncated at {self.max_response_bytes} bytes")
                break
        return bytes(buffer)

    async def send(self, request: httpx.Request) -> ProxyResult:
        """
        Send the request and translate the response.

        Raises:
            UpstreamError: network failure or unreadable body
        """
        try:
            response = await self._client.send(request, stream=True)
            try:
                body = await self._read_capped(response)
            finally:
                await response.aclose()
        except httpx.HTTPError as e:
            logger.error(f"Proxy request to {request.url} failed: {e}")
            raise UpstreamError(f"proxy request failed: {e}") from e

        logger.info(f"Proxy response {response.status_code} from {request.method} {request.url}")
        return translate_response(response.status_code, response.headers, body)

    async def invoke(
        self,
        tool_name: str,
        parameters: Optional[Dict[str, Any]] = None,
        payment: Any = None
    ) -> ProxyResult:
        """
        Proxy one tool call.

        Args:
            tool_name: Name returned by search_resources
            parameters: Optional {query, headers, body}
            payment: Optional x402/payment credential from call metadata

        Returns:
            ProxyResult (error-flagged for caller/protocol problems)

        Raises:
            UpstreamError: the resource could not be reached
        """
        if parameters is not None and not isinstance(parameters, dict):
            return ProxyResult.error("Error: 'parameters' must be an object.")

        if payment is not None:
            try:
                parameters = inject_payment(parameters, payment)
            except (ValidationError, EncodeError) as e:
                logger.warning(f"Rejected x402 payment metadata for {tool_name}: {e}")
                return ProxyResult.error(f"Error: invalid x402 payment metadata: {e}")

        try:
            resource = self.resolve(tool_name)
        except NotFoundError as e:
            logger.warning(f"proxy_tool_call for unknown tool: {tool_name}")
            return ProxyResult.error(str(e))

        try:
            request = self.build_request(resource, parameters)
        except ValidationError as e:
            return ProxyResult.error(f"Error: failed to build proxy request: {e}")

        logger.info(f"Proxying {tool_name} to {request.method} {request.url}")
        return await self.send(request)

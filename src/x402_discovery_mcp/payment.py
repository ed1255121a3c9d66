"""
x402 payment header codec.

Outbound: a caller-supplied payment credential (MCP call metadata
``x402/payment``) is validated and encoded into the version-specific request
header, ``X-PAYMENT`` for v1 and ``PAYMENT-SIGNATURE`` for v2, both carrying
base64 of the canonical JSON.

Inbound: payment-required and settlement envelopes are decoded from the
upstream response headers (``PAYMENT-REQUIRED``, ``PAYMENT-RESPONSE``,
``X-PAYMENT-RESPONSE``) or, for v1 only, from a 402 JSON body.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError, EncodeError, PaymentMetaError

logger = logging.getLogger(__name__)

V1_PAYMENT_HEADER = "X-PAYMENT"
V2_PAYMENT_HEADER = "PAYMENT-SIGNATURE"
PAYMENT_REQUIRED_HEADER = "PAYMENT-REQUIRED"
PAYMENT_RESPONSE_HEADERS = ("PAYMENT-RESPONSE", "X-PAYMENT-RESPONSE")

HTTP_PAYMENT_REQUIRED = 402


# --- Version detection ---

VersionDetector = Callable[[Mapping[str, Any]], Optional[int]]


def normalize_version(value: Any) -> Optional[int]:
    """Coerce an explicit x402Version value to an int, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        version = value
    elif isinstance(value, float) and value.is_integer():
        version = int(value)
    else:
        return None
    return version if version >= 1 else None


def detect_structural_version(payload: Mapping[str, Any]) -> Optional[int]:
    """An accepted + resource envelope is the v2 shape."""
    if payload.get("accepted") is not None and payload.get("resource") is not None:
        return 2
    return None


def detect_explicit_version(payload: Mapping[str, Any]) -> Optional[int]:
    return normalize_version(payload.get("x402Version"))


# Tried in order; the first detector returning a version wins.
VERSION_DETECTORS: Sequence[VersionDetector] = (
    detect_structural_version,
    detect_explicit_version,
)


def detect_version(payload: Any) -> Optional[int]:
    """Infer the x402 protocol version of a JSON object, structure first."""
    if not isinstance(payload, Mapping):
        return None
    for detector in VERSION_DETECTORS:
        version = detector(payload)
        if version is not None:
            return version
    return None


# --- Payment credentials ---

class PaymentCredential(BaseModel):
    """Caller-supplied proof of payment. Use parse_payment_credential()."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    x402_version: int = Field(..., alias="x402Version")
    payload: Dict[str, Any]

    _raw: Dict[str, Any] = PrivateAttr(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        """The credential exactly as the caller supplied it."""
        return self._raw


class PaymentCredentialV1(PaymentCredential):
    """Legacy credential: scheme/network sit next to the payload."""
    scheme: str = ""
    network: str = ""


class PaymentCredentialV2(PaymentCredential):
    """Enveloped credential: resource and accepted are mandatory."""
    resource: Dict[str, Any]
    accepted: Dict[str, Any]


def parse_payment_credential(raw: Any) -> PaymentCredential:
    """
    Validate x402/payment call metadata into a typed credential.

    Raises:
        PaymentMetaError: metadata is not an object, lacks a payload, or is an
            incomplete v2 envelope
        EncodeError: the protocol version cannot be determined
    """
    if not isinstance(raw, Mapping):
        raise PaymentMetaError("x402/payment metadata must be an object")

    if raw.get("payload") is None:
        raise PaymentMetaError("x402/payment metadata missing payload")

    version = detect_version(raw)
    if version is None:
        raise EncodeError("unable to determine x402 version of payment payload")

    data = dict(raw)
    if version >= 2:
        if not isinstance(data.get("resource"), Mapping):
            raise PaymentMetaError("x402/payment metadata missing resource for v2 payment")
        if not isinstance(data.get("accepted"), Mapping):
            raise PaymentMetaError("x402/payment metadata missing accepted for v2 payment")
        model = PaymentCredentialV2
    else:
        model = PaymentCredentialV1

    try:
        credential = model.model_validate({**data, "x402Version": version})
    except PydanticValidationError as e:
        raise PaymentMetaError(f"invalid x402/payment metadata: {e}") from e
    credential._raw = data
    return credential


# --- Encoding ---

@dataclass(frozen=True)
class PaymentHeader:
    name: str
    value: str
    version: int


def canonical_json(payload: Any) -> bytes:
    """Compact, key-sorted JSON encoding used for payment headers."""
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")


def encode_payment_header(credential: Union[PaymentCredential, Mapping[str, Any]]) -> PaymentHeader:
    """
    Encode a credential into its transport header.

    Raises:
        EncodeError: the protocol version cannot be determined
    """
    payload = credential.to_wire() if isinstance(credential, PaymentCredential) else dict(credential)
    try:
        payload_bytes = canonical_json(payload)
    except (TypeError, ValueError) as e:
        raise EncodeError(f"payment payload is not JSON serializable: {e}") from e

    version = detect_version(payload)
    if version is None:
        raise EncodeError("unable to determine x402 version of payment payload")

    name = V2_PAYMENT_HEADER if version >= 2 else V1_PAYMENT_HEADER
    return PaymentHeader(
        name=name,
        value=base64.b64encode(payload_bytes).decode("ascii"),
        version=version,
    )


# --- Decoding ---

def decode_envelope(raw: str) -> Dict[str, Any]:
    """
    Decode a base64 JSON header value (padded or unpadded standard alphabet).

    Raises:
        DecodeError: not base64 or not a JSON object
    """
    try:
        decoded = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        try:
            decoded = base64.b64decode(raw + "=" * (-len(raw) % 4), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"payment header is not valid base64: {e}") from e

    try:
        envelope = json.loads(decoded)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"payment header is not valid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise DecodeError("payment header must decode to a JSON object")
    return envelope


def decode_payment_header(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Lenient decode: None for missing or corrupt header values."""
    if not raw:
        return None
    try:
        return decode_envelope(raw)
    except DecodeError as e:
        logger.debug(f"Ignoring undecodable payment header: {e}")
        return None


def decode_payment_required(
    status_code: int,
    headers: Union[httpx.Headers, Mapping[str, str]],
    body: bytes
) -> Optional[Dict[str, Any]]:
    """
    Extract a payment-required envelope from an upstream response.

    The PAYMENT-REQUIRED header wins. Otherwise only a 402 whose JSON body is
    an x402 v1 payload with an ``accepts`` field qualifies; v2 envelopes are
    expected in the header only.
    """
    headers = httpx.Headers(headers)
    envelope = decode_payment_header(headers.get(PAYMENT_REQUIRED_HEADER))
    if envelope is not None:
        return envelope

    if status_code != HTTP_PAYMENT_REQUIRED or not body:
        return None

    try:
        decoded = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(decoded, dict):
        return None

    if detect_version(decoded) != 1:
        return None
    if decoded.get("accepts") is None:
        return None
    return decoded


def decode_payment_response(headers: Union[httpx.Headers, Mapping[str, str]]) -> Optional[Dict[str, Any]]:
    """Extract a settlement envelope from PAYMENT-RESPONSE, then X-PAYMENT-RESPONSE."""
    headers = httpx.Headers(headers)
    for name in PAYMENT_RESPONSE_HEADERS:
        envelope = decode_payment_header(headers.get(name))
        if envelope is not None:
            return envelope
    return None

"""
Tests for the x402 payment header codec.
"""

import base64
import json

import pytest

from x402_discovery_mcp.errors import DecodeError, EncodeError, PaymentMetaError
from x402_discovery_mcp.payment import (
    PaymentCredentialV1,
    PaymentCredentialV2,
    V1_PAYMENT_HEADER,
    V2_PAYMENT_HEADER,
    canonical_json,
    decode_envelope,
    decode_payment_header,
    decode_payment_required,
    decode_payment_response,
    detect_version,
    encode_payment_header,
    parse_payment_credential,
)

from tests.conftest import V1_CREDENTIAL, V2_CREDENTIAL


def b64(payload, padded=True) -> str:
    encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    return encoded if padded else encoded.rstrip("=")


class TestDetectVersion:

    def test_structure_wins_over_explicit_version(self):
        assert detect_version({"x402Version": 1, "accepted": {}, "resource": {}}) == 2

    @pytest.mark.parametrize("value,expected", [
        (1, 1),
        (2, 2),
        (2.0, 2),
        (1.5, None),
        (0, None),
        (-3, None),
        (True, None),
        ("2", None),
        (None, None),
    ])
    def test_explicit_version(self, value, expected):
        assert detect_version({"x402Version": value}) == expected

    def test_non_object_has_no_version(self):
        assert detect_version(["x402Version", 2]) is None

    def test_partial_v2_structure_is_not_v2(self):
        assert detect_version({"accepted": {}, "payload": {}}) is None


class TestParseCredential:

    def test_v2_credential(self):
        credential = parse_payment_credential(V2_CREDENTIAL)

        assert isinstance(credential, PaymentCredentialV2)
        assert credential.x402_version == 2
        assert credential.accepted["amount"] == "10000"
        assert credential.to_wire() == V2_CREDENTIAL

    def test_v1_credential(self):
        credential = parse_payment_credential(V1_CREDENTIAL)

        assert isinstance(credential, PaymentCredentialV1)
        assert credential.scheme == "exact"
        assert credential.network == "base-sepolia"

    def test_structural_v2_without_explicit_version(self):
        raw = {key: value for key, value in V2_CREDENTIAL.items() if key != "x402Version"}

        credential = parse_payment_credential(raw)

        assert credential.x402_version == 2
        assert "x402Version" not in credential.to_wire()

    @pytest.mark.parametrize("raw", ["token", ["a"], 42])
    def test_non_object_is_rejected(self, raw):
        with pytest.raises(PaymentMetaError, match="must be an object"):
            parse_payment_credential(raw)

    def test_missing_payload(self):
        with pytest.raises(PaymentMetaError, match="missing payload"):
            parse_payment_credential({"x402Version": 1, "scheme": "exact"})

    def test_v2_missing_resource(self):
        raw = {"x402Version": 2, "accepted": {"scheme": "exact"}, "payload": {"sig": "0x"}}

        with pytest.raises(PaymentMetaError, match="missing resource"):
            parse_payment_credential(raw)

    def test_v2_missing_accepted(self):
        raw = {"x402Version": 2, "resource": {"url": "tool://x"}, "payload": {"sig": "0x"}}

        with pytest.raises(PaymentMetaError, match="missing accepted"):
            parse_payment_credential(raw)

    def test_unknown_version(self):
        with pytest.raises(EncodeError):
            parse_payment_credential({"payload": {"sig": "0x"}})


class TestEncode:

    def test_v2_uses_payment_signature(self):
        header = encode_payment_header(parse_payment_credential(V2_CREDENTIAL))

        assert header.name == V2_PAYMENT_HEADER
        assert header.version == 2
        assert base64.b64decode(header.value) == canonical_json(V2_CREDENTIAL)

    def test_v1_uses_x_payment(self):
        header = encode_payment_header(V1_CREDENTIAL)

        assert header.name == V1_PAYMENT_HEADER
        assert header.version == 1
        assert base64.b64decode(header.value) == canonical_json(V1_CREDENTIAL)

    def test_encoding_is_key_order_independent(self):
        reordered = dict(reversed(list(V2_CREDENTIAL.items())))

        assert encode_payment_header(reordered).value == encode_payment_header(V2_CREDENTIAL).value

    def test_encoding_is_compact(self):
        header = encode_payment_header({"x402Version": 1, "payload": {"a": 1}})

        assert base64.b64decode(header.value) == b'{"payload":{"a":1},"x402Version":1}'

    def test_unknown_version_fails(self):
        with pytest.raises(EncodeError):
            encode_payment_header({"payload": {"sig": "0x"}})

    def test_unserializable_payload_fails(self):
        with pytest.raises(EncodeError):
            encode_payment_header({"x402Version": 1, "payload": {"when": object()}})


class TestDecode:

    @pytest.mark.parametrize("padded", [True, False])
    def test_padded_and_unpadded(self, padded):
        envelope = {"x402Version": 2, "accepts": [{"scheme": "exact"}]}

        assert decode_envelope(b64(envelope, padded=padded)) == envelope

    def test_invalid_base64(self):
        with pytest.raises(DecodeError):
            decode_envelope("!!!not-base64!!!")

    def test_invalid_json(self):
        with pytest.raises(DecodeError):
            decode_envelope(base64.b64encode(b"{oops").decode("ascii"))

    def test_non_object_json(self):
        with pytest.raises(DecodeError):
            decode_envelope(base64.b64encode(b"[1, 2]").decode("ascii"))

    @pytest.mark.parametrize("raw", [None, "", "%%%"])
    def test_lenient_decode_returns_none(self, raw):
        assert decode_payment_header(raw) is None


class TestDecodePaymentRequired:

    def test_header_wins_on_any_status(self):
        envelope = {"x402Version": 2, "accepts": [{"scheme": "exact"}], "resource": {"url": "http://x"}}

        result = decode_payment_required(200, {"PAYMENT-REQUIRED": b64(envelope)}, b"")

        assert result == envelope

    def test_header_lookup_is_case_insensitive(self):
        envelope = {"x402Version": 1, "accepts": []}

        assert decode_payment_required(402, {"payment-required": b64(envelope)}, b"") == envelope

    def test_v1_body_on_402(self):
        body = {"x402Version": 1, "error": "payment required", "accepts": [{"scheme": "exact"}]}

        assert decode_payment_required(402, {}, json.dumps(body).encode()) == body

    def test_v1_body_requires_accepts(self):
        body = json.dumps({"x402Version": 1, "error": "nope"}).encode()

        assert decode_payment_required(402, {}, body) is None

    def test_v2_body_is_ignored(self):
        body = json.dumps({"x402Version": 2, "accepts": [{"scheme": "exact"}]}).encode()

        assert decode_payment_required(402, {}, body) is None

    def test_body_ignored_unless_402(self):
        body = json.dumps({"x402Version": 1, "accepts": []}).encode()

        assert decode_payment_required(200, {}, body) is None

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1]"])
    def test_unusable_body(self, body):
        assert decode_payment_required(402, {}, body) is None

    def test_corrupt_header_falls_back_to_body(self):
        body = {"x402Version": 1, "accepts": [{"scheme": "exact"}]}

        result = decode_payment_required(402, {"PAYMENT-REQUIRED": "%%%"}, json.dumps(body).encode())

        assert result == body


class TestDecodePaymentResponse:

    def test_payment_response_header(self):
        receipt = {"success": True, "transaction": "0xabc"}

        assert decode_payment_response({"PAYMENT-RESPONSE": b64(receipt)}) == receipt

    def test_legacy_header(self):
        receipt = {"success": True, "transaction": "0xdef"}

        assert decode_payment_response({"X-PAYMENT-RESPONSE": b64(receipt, padded=False)}) == receipt

    def test_v2_header_preferred(self):
        headers = {
            "PAYMENT-RESPONSE": b64({"source": "v2"}),
            "X-PAYMENT-RESPONSE": b64({"source": "v1"}),
        }

        assert decode_payment_response(headers) == {"source": "v2"}

    def test_absent(self):
        assert decode_payment_response({"Content-Type": "application/json"}) is None

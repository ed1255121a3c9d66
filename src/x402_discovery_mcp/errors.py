"""
Error taxonomy for the x402 discovery bridge.

Everything except LoadError is rendered back to the agent as an error-flagged
tool result. LoadError is fatal at startup. UpstreamError aborts the
invocation and its result is tagged with _meta["x402/upstream-error"].
"""


class X402BridgeError(Exception):
    """Base class for all errors raised by the bridge."""


class LoadError(X402BridgeError):
    """The discovery catalog fixture is missing or malformed."""


class ValidationError(X402BridgeError):
    """Caller input is malformed (missing toolName, bad headers, incomplete credential)."""


class PaymentMetaError(ValidationError):
    """The x402/payment call metadata cannot be turned into a payment header."""


class EncodeError(X402BridgeError):
    """The protocol version of a payment credential cannot be determined."""


class DecodeError(X402BridgeError):
    """A payment header payload is corrupt."""


class NotFoundError(X402BridgeError):
    """No catalog resource maps to the requested tool name."""


class UpstreamError(X402BridgeError):
    """The upstream HTTP resource could not be reached or read."""

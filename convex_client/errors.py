"""
Error taxonomy for the Convex client.

Four origins, four families:

    Validation (ValueError subclasses):
        Bad address, amount, CNS name or key. Raised synchronously while
        building CVM source, before any network call.

    Protocol (RuntimeError subclasses):
        The client was used without an account, or the peer answered
        without a field the protocol requires (e.g. a prepare hash).

    Transport (TransportError):
        Timeout, connection failure, non-success HTTP status, or a body
        that is not a JSON object. Carries error_code + details.

    Ledger (ConvexError):
        The peer returned a Result envelope carrying ``errorCode``. This
        is the only error that wraps a Result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from convex_client.result import Result, ResultInfo


# =========================================================================
# Validation
# =========================================================================


class InvalidAddressError(ValueError):
    """Malformed numeric or CNS address."""


class InvalidAmountError(ValueError):
    """Negative, fractional, non-finite or non-digit amount."""


class InvalidNameError(ValueError):
    """CNS name that does not match the dotted-path pattern."""


class InvalidKeyError(ValueError):
    """Public key that is not 32 bytes of hex."""


# =========================================================================
# Protocol
# =========================================================================


class NoAccountError(RuntimeError):
    """An operation needs an address (and, for transactions, a signer)."""


class ProtocolError(RuntimeError):
    """The peer responded but omitted a field the protocol depends on."""


# =========================================================================
# Transport
# =========================================================================

TRANSPORT_TIMEOUT = "TIMEOUT"
TRANSPORT_CONNECTION_FAILED = "CONNECTION_FAILED"
TRANSPORT_HTTP_ERROR = "HTTP_ERROR"
TRANSPORT_INVALID_JSON = "INVALID_JSON"


class TransportError(Exception):
    """Infrastructure failure between the client and the peer.

    Attributes:
        error_code: One of TIMEOUT, CONNECTION_FAILED, HTTP_ERROR,
            INVALID_JSON.
        details: Diagnostic context (url, status_code, body preview).
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


# =========================================================================
# Ledger
# =========================================================================


class ConvexError(Exception):
    """A CVM or peer-level error reported inside a Result envelope.

    The full Result is kept so callers can inspect juice, fees and trace.
    """

    def __init__(self, result: Result) -> None:
        super().__init__(f"Convex error: {result.error_code}")
        self.result = result

    @property
    def code(self) -> str | None:
        """Error code shortcut (e.g. "FUNDS", "NOBODY", "STATE")."""
        return self.result.error_code

    @property
    def info(self) -> ResultInfo | None:
        """Execution info shortcut (juice, fees, trace, ...)."""
        return self.result.info


def throw_if_error(result: Result) -> Result:
    """Raise ConvexError if the result carries an error code, else return it."""
    if result.error_code:
        raise ConvexError(result)
    return result

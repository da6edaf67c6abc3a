"""
Application-level exceptions.

RPC failures are classified into a fixed set of kinds so callers can react
(abort a session, count a partial failure, show actionable guidance) without
parsing messages. Cancellation is a separate control signal, never an RpcError.
"""

from __future__ import annotations

from enum import Enum

RATE_LIMIT_MESSAGE = (
    "Rate-limited by the RPC endpoint. Try lower concurrency, fewer transactions, "
    "or a different RPC."
)
NETWORK_MESSAGE = (
    "RPC endpoint is unavailable or blocked. Check the endpoint URL and your network."
)
UNEXPECTED_MESSAGE = "Unexpected error while loading wallet data."


class RpcErrorKind(str, Enum):
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    HTTP_STATUS = "http_status"
    INVALID_RESPONSE = "invalid_response"
    PROTOCOL = "protocol"
    MISSING_RESULT = "missing_result"


class RpcError(Exception):
    """Base class for JSON-RPC call failures."""

    kind: RpcErrorKind = RpcErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    @property
    def is_rate_limit(self) -> bool:
        return self.kind is RpcErrorKind.RATE_LIMITED

    @property
    def is_network(self) -> bool:
        return self.kind is RpcErrorKind.NETWORK

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, "
            f"code={self.code!r}, http_status={self.http_status!r})"
        )


class RpcNetworkError(RpcError):
    """Transport could not reach the endpoint."""

    kind = RpcErrorKind.NETWORK


class RpcRateLimitedError(RpcError):
    """HTTP 429, JSON-RPC 429 / -32005, or a rate/throttle error message."""

    kind = RpcErrorKind.RATE_LIMITED


class RpcHttpStatusError(RpcError):
    """Non-2xx HTTP status other than 429."""

    kind = RpcErrorKind.HTTP_STATUS


class RpcInvalidResponseError(RpcError):
    """Body is not a parseable JSON-RPC envelope."""

    kind = RpcErrorKind.INVALID_RESPONSE


class RpcProtocolError(RpcError):
    """JSON-RPC error object that is not a rate limit."""

    kind = RpcErrorKind.PROTOCOL


class RpcMissingResultError(RpcError):
    """Envelope has neither result nor error."""

    kind = RpcErrorKind.MISSING_RESULT


class OperationCancelled(Exception):
    """Raised when a CancellationToken fires; a control signal, not a failure."""


class ConfigError(ValueError):
    """Invalid configuration value."""


def readable_error(error: BaseException) -> str:
    """Map an exception to a user-displayable message."""
    if isinstance(error, RpcError):
        if error.is_rate_limit:
            return RATE_LIMIT_MESSAGE
        if error.is_network:
            return NETWORK_MESSAGE
        return f"RPC error: {error.message}"
    message = str(error).strip()
    return message or UNEXPECTED_MESSAGE

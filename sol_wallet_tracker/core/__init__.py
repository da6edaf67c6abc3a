"""
Core utilities: error taxonomy, readable errors, and cancellation.

Shared by the RPC client, worker, orchestrator and API server.
"""

from sol_wallet_tracker.core.cancellation import CancellationToken
from sol_wallet_tracker.core.exceptions import (
    ConfigError,
    OperationCancelled,
    RpcError,
    RpcErrorKind,
    RpcHttpStatusError,
    RpcInvalidResponseError,
    RpcMissingResultError,
    RpcNetworkError,
    RpcProtocolError,
    RpcRateLimitedError,
    readable_error,
)

__all__ = [
    "CancellationToken",
    "ConfigError",
    "OperationCancelled",
    "RpcError",
    "RpcErrorKind",
    "RpcHttpStatusError",
    "RpcInvalidResponseError",
    "RpcMissingResultError",
    "RpcNetworkError",
    "RpcProtocolError",
    "RpcRateLimitedError",
    "readable_error",
]

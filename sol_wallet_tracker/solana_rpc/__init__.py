"""
Solana JSON-RPC package.

Async HTTP client for the read-only RPC methods the tracker uses, plus the
models its typed helpers return.
"""

from sol_wallet_tracker.solana_rpc.client import SolanaRpcClient
from sol_wallet_tracker.solana_rpc.models import (
    AccountKey,
    BareAccountKey,
    ParsedAccountKey,
    SignatureInfo,
    TransactionDetail,
    TransactionMeta,
    parse_account_key,
)

__all__ = [
    "AccountKey",
    "BareAccountKey",
    "ParsedAccountKey",
    "SignatureInfo",
    "SolanaRpcClient",
    "TransactionDetail",
    "TransactionMeta",
    "parse_account_key",
]

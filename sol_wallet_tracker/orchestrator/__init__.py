"""
Orchestrator package: one wallet lookup session at a time.

Sequences cache lookup, balance, token balances, signature listing,
bounded-concurrency detail fetch, inference, and cache write.
"""

from sol_wallet_tracker.orchestrator.session import (
    NullProgressSink,
    ProgressSink,
    WalletSnapshot,
    WalletTracker,
)

__all__ = ["NullProgressSink", "ProgressSink", "WalletSnapshot", "WalletTracker"]

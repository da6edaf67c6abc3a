"""
Solana wallet tracker: balances, recent signatures, and per-transaction SOL deltas.

Aggregates a wallet's on-chain activity from a JSON-RPC endpoint into normalized
rows, with bounded-concurrency detail fetching and a short-lived local cache.
Modular layout: RPC client, worker, analytics, cache, orchestrator, API server.
"""

__version__ = "0.1.0"

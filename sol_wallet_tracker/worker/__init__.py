"""
Worker package: bounded-concurrency execution of per-item async work.

Knows nothing about RPC or ledgers; the orchestrator supplies the worker.
"""

from sol_wallet_tracker.worker.concurrency import run_with_concurrency

__all__ = ["run_with_concurrency"]

"""Cooperative cancellation shared by one wallet lookup session."""

from __future__ import annotations

import asyncio

from sol_wallet_tracker.core.exceptions import OperationCancelled


class CancellationToken:
    """
    One-shot cancellation flag backed by asyncio.Event.

    The RPC client races in-flight requests against wait(); the worker checks
    `cancelled` before claiming each item.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()

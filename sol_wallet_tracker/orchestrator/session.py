"""
Wallet lookup sessions.

A WalletTracker owns at most one active session. Starting a new lookup
cancels the previous one (its token fires, aborting in-flight RPC calls and
halting the detail fetch loop). Every mutation of session results is guarded
by a session identity check, so a superseded session never writes rows,
progress or cache entries after a newer one has started.

Failure policy:
- balance / signature listing failures end the session with a readable error;
- token balance failures are reported as token_error and do not end it;
- per-transaction failures become detail_unavailable rows and are counted;
- cancellation ends the session quietly (cancelled=True, no error).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, Sequence

from sol_wallet_tracker.analytics.inference import infer_transaction_row, lamports_to_sol
from sol_wallet_tracker.analytics.models import TokenBalance, TxRow
from sol_wallet_tracker.analytics.token_balances import aggregate_token_balances
from sol_wallet_tracker.cache.wallet_cache import WalletCache, WalletCacheEntry
from sol_wallet_tracker.core.cancellation import CancellationToken
from sol_wallet_tracker.core.exceptions import OperationCancelled, RpcError, readable_error
from sol_wallet_tracker.solana_rpc.client import SolanaRpcClient
from sol_wallet_tracker.solana_rpc.models import SignatureInfo
from sol_wallet_tracker.tracker_logging import bind_wallet, short_id
from sol_wallet_tracker.worker.concurrency import run_with_concurrency


@dataclass
class WalletSnapshot:
    """What a client shows for one lookup; updated in place while the session runs."""

    wallet: str
    endpoint: str
    limit: int
    balance_sol: Decimal | None = None
    rows: list[TxRow] = field(default_factory=list)
    token_balances: list[TokenBalance] = field(default_factory=list)
    loaded: int = 0
    total: int = 0
    partial_failures: int = 0
    error: str | None = None
    token_error: str | None = None
    from_cache: bool = False
    cancelled: bool = False
    cached_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "endpoint": self.endpoint,
            "limit": self.limit,
            "balance_sol": format(self.balance_sol, "f") if self.balance_sol is not None else None,
            "rows": [r.to_dict() for r in self.rows],
            "token_balances": [t.to_dict() for t in self.token_balances],
            "loaded": self.loaded,
            "total": self.total,
            "partial_failures": self.partial_failures,
            "error": self.error,
            "token_error": self.token_error,
            "from_cache": self.from_cache,
            "cancelled": self.cancelled,
            "cached_at": self.cached_at.isoformat() if self.cached_at is not None else None,
        }


class ProgressSink(Protocol):
    """Receives incremental updates; implementations must not block."""

    def on_snapshot(self, snapshot: WalletSnapshot) -> None:
        """Called when cached data is shown or a session-level field changes."""
        ...

    def on_row(self, index: int, row: TxRow, snapshot: WalletSnapshot) -> None:
        """Called after the row for signature `index` is resolved."""
        ...


class NullProgressSink:
    def on_snapshot(self, snapshot: WalletSnapshot) -> None:
        pass

    def on_row(self, index: int, row: TxRow, snapshot: WalletSnapshot) -> None:
        pass


@dataclass(eq=False)
class _Session:
    id: int
    token: CancellationToken


def snapshot_from_cache(
    wallet: str, endpoint: str, limit: int, entry: WalletCacheEntry
) -> WalletSnapshot:
    return WalletSnapshot(
        wallet=wallet,
        endpoint=endpoint,
        limit=limit,
        balance_sol=entry.balance_sol,
        rows=list(entry.rows),
        token_balances=list(entry.token_balances),
        loaded=len(entry.rows),
        total=len(entry.rows),
        from_cache=True,
        cached_at=entry.cached_at,
    )


class WalletTracker:
    """
    Runs wallet lookups against one RPC client and one cache.

    Example:
        async with SolanaRpcClient() as rpc:
            tracker = WalletTracker(rpc, WalletCache(MemoryStore()))
            snapshot = await tracker.track(wallet, endpoint, limit=20, concurrency=3)
    """

    def __init__(
        self,
        rpc: SolanaRpcClient,
        cache: WalletCache,
        *,
        sink: ProgressSink | None = None,
    ) -> None:
        self._rpc = rpc
        self._cache = cache
        self._sink: ProgressSink = sink or NullProgressSink()
        self._session_counter = 0
        self._active: _Session | None = None

    @property
    def busy(self) -> bool:
        return self._active is not None

    def cancel(self) -> None:
        """Cancel the active session, if any."""
        if self._active is not None:
            self._active.token.cancel()
            self._active = None

    def _is_current(self, session: _Session) -> bool:
        return self._active is session

    async def track(
        self,
        wallet: str,
        endpoint: str,
        limit: int,
        concurrency: int,
        *,
        refresh: bool = False,
    ) -> WalletSnapshot:
        """
        Look up a wallet.

        A fresh cache entry is returned as-is unless refresh=True, in which case
        it is pushed to the sink first and then replaced by a full refetch.
        """
        if limit < 1:
            raise ValueError("limit must be a positive integer")
        if concurrency < 1:
            raise ValueError("concurrency must be a positive integer")
        cached = self._cache.get(wallet, endpoint, limit)
        self.cancel()
        if cached is not None:
            snapshot = snapshot_from_cache(wallet, endpoint, limit, cached)
            self._sink.on_snapshot(snapshot)
            if not refresh:
                bind_wallet(wallet).info("wallet_cache_hit", rows=len(cached.rows))
                return snapshot
        fallback_tokens = cached.token_balances if cached is not None else ()
        return await self._run_session(wallet, endpoint, limit, concurrency, fallback_tokens)

    async def _run_session(
        self,
        wallet: str,
        endpoint: str,
        limit: int,
        concurrency: int,
        fallback_tokens: Sequence[TokenBalance],
    ) -> WalletSnapshot:
        self._session_counter += 1
        session = _Session(self._session_counter, CancellationToken())
        self._active = session
        token = session.token
        log = bind_wallet(wallet).bind(session_id=session.id)
        snapshot = WalletSnapshot(wallet=wallet, endpoint=endpoint, limit=limit)
        log.info("wallet_session_started", limit=limit, concurrency=concurrency)

        try:
            lamports = await self._rpc.get_balance(endpoint, wallet, token)
            if not self._is_current(session):
                return _superseded(snapshot)
            snapshot.balance_sol = lamports_to_sol(lamports)

            token_balances: Sequence[TokenBalance] = fallback_tokens
            try:
                raw_accounts = await self._rpc.get_token_accounts_by_owner(endpoint, wallet, token)
                token_balances = aggregate_token_balances(raw_accounts)
            except RpcError as e:
                log.warning("wallet_token_balances_failed", error=e.message, kind=e.kind.value)
                snapshot.token_error = readable_error(e)
            if not self._is_current(session):
                return _superseded(snapshot)
            snapshot.token_balances = list(token_balances)
            self._sink.on_snapshot(snapshot)

            signatures = await self._rpc.get_signatures_for_address(endpoint, wallet, limit, token)
            if not self._is_current(session):
                return _superseded(snapshot)
            snapshot.total = len(signatures)
            self._sink.on_snapshot(snapshot)

            await self._fetch_rows(session, snapshot, signatures, concurrency)
            if not self._is_current(session) or token.cancelled:
                return _superseded(snapshot)

            entry = self._cache.put(
                wallet, endpoint, limit, snapshot.balance_sol, snapshot.rows, snapshot.token_balances
            )
            snapshot.cached_at = entry.cached_at
            log.info(
                "wallet_session_completed",
                rows=len(snapshot.rows),
                partial_failures=snapshot.partial_failures,
            )
            return snapshot
        except OperationCancelled:
            log.info("wallet_session_cancelled")
            return _superseded(snapshot)
        except RpcError as e:
            if not self._is_current(session):
                return _superseded(snapshot)
            snapshot.error = readable_error(e)
            log.warning("wallet_session_failed", error=e.message, kind=e.kind.value)
            self._sink.on_snapshot(snapshot)
            return snapshot
        finally:
            if self._is_current(session):
                self._active = None

    async def _fetch_rows(
        self,
        session: _Session,
        snapshot: WalletSnapshot,
        signatures: list[SignatureInfo],
        concurrency: int,
    ) -> None:
        """Resolve one row per signature; rows keep the signature list order."""
        slots: list[TxRow | None] = [None] * len(signatures)
        failures = 0

        async def _resolve(info: SignatureInfo, index: int) -> None:
            nonlocal failures
            try:
                detail = await self._rpc.get_transaction(
                    snapshot.endpoint, info.signature, session.token
                )
            except RpcError as e:
                failures += 1
                detail = None
                bind_wallet(snapshot.wallet).warning(
                    "wallet_tx_detail_failed",
                    signature=short_id(info.signature),
                    kind=e.kind.value,
                    error=e.message,
                )
            row = infer_transaction_row(snapshot.wallet, info, detail, snapshot.endpoint)
            if not self._is_current(session):
                return
            slots[index] = row
            snapshot.loaded += 1
            snapshot.partial_failures = failures
            snapshot.rows = [r for r in slots if r is not None]
            self._sink.on_row(index, row, snapshot)

        await run_with_concurrency(signatures, concurrency, _resolve, token=session.token)


def _superseded(snapshot: WalletSnapshot) -> WalletSnapshot:
    snapshot.cancelled = True
    return snapshot

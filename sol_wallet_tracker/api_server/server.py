"""
FastAPI server: wallet lookups over HTTP.

Exposes GET /wallet/{address} returning balance, normalized transaction rows,
token balances, progress counters and partial-failure count. Each request
gets its own WalletTracker; the RPC client and cache are shared app-wide.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from sol_wallet_tracker import __version__
from sol_wallet_tracker.analytics import ROW_ORDERS, sort_rows, summarize_rows
from sol_wallet_tracker.cache import WalletCache, get_store
from sol_wallet_tracker.config import (
    ALLOWED_CONCURRENCY,
    ALLOWED_TX_LIMITS,
    RPC_ENDPOINT_PRESETS,
    TrackerSettings,
    get_settings,
)
from sol_wallet_tracker.config.env import mask_rpc_url
from sol_wallet_tracker.orchestrator import WalletTracker
from sol_wallet_tracker.solana_rpc import SolanaRpcClient
from sol_wallet_tracker.tracker_logging import get_logger, short_id
from sol_wallet_tracker.utils import validate_endpoint_url, validate_wallet_address

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class TxRowModel(BaseModel):
    signature: str
    time: str | None = Field(None, description="Block time, ISO 8601 UTC")
    status: str = Field(..., description="success | fail | unknown")
    direction: str = Field(..., description="incoming | outgoing | unknown")
    sol_change: str | None = Field(None, description="Signed SOL delta for the wallet")
    fee_sol: str | None = None
    slot: int | None = None
    explorer_url: str
    detail_unavailable: bool = False


class TokenBalanceModel(BaseModel):
    mint: str
    raw_amount: str = Field(..., description="Summed base-unit amount (integer string)")
    amount: str = Field(..., description="Display amount")
    decimals: int = Field(..., ge=0)
    account_count: int = Field(..., ge=1)


class RowSummaryModel(BaseModel):
    tx_count: int
    known_change_count: int
    net_sol_change: str = Field(..., description="Sum of known SOL deltas")
    success_rate: float | None = Field(None, description="Percent success over decided rows")


class WalletResponse(BaseModel):
    """GET /wallet/{address} response."""

    wallet: str
    endpoint: str
    limit: int
    balance_sol: str | None = None
    rows: list[TxRowModel] = Field(default_factory=list)
    token_balances: list[TokenBalanceModel] = Field(default_factory=list)
    loaded: int = 0
    total: int = 0
    partial_failures: int = 0
    token_error: str | None = None
    from_cache: bool = False
    cached_at: str | None = None
    summary: RowSummaryModel | None = None


class EndpointPreset(BaseModel):
    label: str
    url: str


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: TrackerSettings | None = None,
    *,
    rpc: SolanaRpcClient | None = None,
    cache: WalletCache | None = None,
) -> FastAPI:
    """
    Build the API app. rpc / cache may be injected (tests); otherwise they are
    created from settings in the lifespan and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or get_settings()
        owns_rpc = rpc is None
        app.state.settings = resolved
        app.state.rpc = rpc or SolanaRpcClient(timeout_sec=resolved.request_timeout_sec)
        app.state.cache = cache or WalletCache(get_store(resolved.cache_db_path))
        logger.info(
            "api_started",
            default_endpoint=mask_rpc_url(resolved.rpc_url),
            cache="sqlite" if resolved.cache_db_path else "memory",
        )
        try:
            yield
        finally:
            if owns_rpc:
                await app.state.rpc.aclose()
            logger.info("api_stopped")

    app = FastAPI(
        title="Solana Wallet Tracker API",
        description="Balances, recent transactions and token holdings for a Solana wallet.",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.get("/endpoints", response_model=list[EndpointPreset])
    def endpoints() -> list[EndpointPreset]:
        """Built-in RPC endpoint presets."""
        return [EndpointPreset(label=label, url=url) for label, url in RPC_ENDPOINT_PRESETS]

    @app.get("/wallet/{address}", response_model=WalletResponse)
    async def get_wallet(
        address: str,
        request: Request,
        endpoint: str | None = Query(None, description="RPC URL; defaults to SOLANA_RPC_URL"),
        limit: int | None = Query(None, description=f"Transactions to load: {ALLOWED_TX_LIMITS}"),
        concurrency: int | None = Query(None, description=f"Parallel detail fetches: {ALLOWED_CONCURRENCY}"),
        refresh: bool = Query(False, description="Refetch even when a fresh cache entry exists"),
        sort: str = Query("signature", description=f"Row order: {ROW_ORDERS}"),
    ) -> WalletResponse:
        """
        Look up a wallet. 400 for an invalid address or endpoint, 422 for a
        disallowed limit / concurrency / sort, 502 when the RPC lookup fails.
        """
        resolved: TrackerSettings = request.app.state.settings
        address = address.strip()
        wallet_error = validate_wallet_address(address)
        if wallet_error:
            raise HTTPException(status_code=400, detail=wallet_error)
        rpc_url = (endpoint or resolved.rpc_url).strip()
        endpoint_error = validate_endpoint_url(rpc_url)
        if endpoint_error:
            raise HTTPException(status_code=400, detail=endpoint_error)
        tx_limit = resolved.tx_limit if limit is None else limit
        if tx_limit not in ALLOWED_TX_LIMITS:
            raise HTTPException(status_code=422, detail=f"limit must be one of {list(ALLOWED_TX_LIMITS)}")
        workers = resolved.concurrency if concurrency is None else concurrency
        if workers not in ALLOWED_CONCURRENCY:
            raise HTTPException(
                status_code=422, detail=f"concurrency must be one of {list(ALLOWED_CONCURRENCY)}"
            )
        if sort not in ROW_ORDERS:
            raise HTTPException(status_code=422, detail=f"sort must be one of {list(ROW_ORDERS)}")

        logger.info("wallet_lookup_called", wallet_id=short_id(address), limit=tx_limit, refresh=refresh)
        tracker = WalletTracker(request.app.state.rpc, request.app.state.cache)
        snapshot = await tracker.track(address, rpc_url, tx_limit, workers, refresh=refresh)
        if snapshot.error:
            raise HTTPException(status_code=502, detail=snapshot.error)
        if snapshot.cancelled:
            raise HTTPException(status_code=503, detail="Wallet lookup was cancelled.")
        snapshot.rows = sort_rows(snapshot.rows, sort)
        summary = summarize_rows(snapshot.rows)
        return WalletResponse(
            **_response_fields(snapshot.to_dict()),
            summary=RowSummaryModel(
                tx_count=summary.tx_count,
                known_change_count=summary.known_change_count,
                net_sol_change=format(summary.net_sol_change, "f"),
                success_rate=summary.success_rate,
            ),
        )

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    return app


def _response_fields(data: dict[str, Any]) -> dict[str, Any]:
    data.pop("error", None)
    data.pop("cancelled", None)
    return data


app = create_app()

"""
Main entrypoint: one-off wallet lookup (JSON to stdout) or the FastAPI server.

    python main.py lookup <wallet> [--endpoint URL] [--limit 20|50] [--concurrency 3|5] [--refresh]
                          [--sort signature|newest|sol_change]
    python main.py serve [--host HOST] [--port PORT]

Env: SOLANA_RPC_URL, TRACKER_TX_LIMIT, TRACKER_CONCURRENCY, TRACKER_CACHE_DB_PATH,
API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.

API-only: uvicorn sol_wallet_tracker.api_server.server:app --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

# Configure structured JSON logging before other imports that may log
from sol_wallet_tracker.tracker_logging import get_logger

logger = get_logger("main")


async def _lookup(args: argparse.Namespace) -> int:
    from sol_wallet_tracker.analytics import sort_rows
    from sol_wallet_tracker.cache import WalletCache, get_store
    from sol_wallet_tracker.config import get_settings
    from sol_wallet_tracker.orchestrator import WalletTracker
    from sol_wallet_tracker.solana_rpc import SolanaRpcClient
    from sol_wallet_tracker.utils import validate_endpoint_url, validate_wallet_address

    settings = get_settings()
    wallet = args.wallet.strip()
    endpoint = (args.endpoint or settings.rpc_url).strip()
    error = validate_wallet_address(wallet) or validate_endpoint_url(endpoint)
    if error:
        print(error, file=sys.stderr)
        return 2

    cache = WalletCache(get_store(settings.cache_db_path))
    async with SolanaRpcClient(timeout_sec=settings.request_timeout_sec) as rpc:
        tracker = WalletTracker(rpc, cache)
        snapshot = await tracker.track(
            wallet,
            endpoint,
            args.limit or settings.tx_limit,
            args.concurrency or settings.concurrency,
            refresh=args.refresh,
        )
    snapshot.rows = sort_rows(snapshot.rows, args.sort)
    print(json.dumps(snapshot.to_dict(), indent=2))
    if snapshot.error:
        print(snapshot.error, file=sys.stderr)
        return 1
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from sol_wallet_tracker.config import get_settings

    settings = get_settings()
    host = args.host or settings.api_host
    port = args.port or settings.api_port
    logger.info("main_server_starting", host=host, port=port)
    uvicorn.run(
        "sol_wallet_tracker.api_server.server:app",
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    from sol_wallet_tracker.analytics import ROW_ORDERS
    from sol_wallet_tracker.config import ALLOWED_CONCURRENCY, ALLOWED_TX_LIMITS

    parser = argparse.ArgumentParser(description="Solana wallet tracker")
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Fetch balance and recent transactions for a wallet")
    lookup.add_argument("wallet", help="Base58 wallet address")
    lookup.add_argument("--endpoint", help="RPC URL (default: SOLANA_RPC_URL)")
    lookup.add_argument("--limit", type=int, choices=ALLOWED_TX_LIMITS)
    lookup.add_argument("--concurrency", type=int, choices=ALLOWED_CONCURRENCY)
    lookup.add_argument("--refresh", action="store_true", help="Ignore a fresh cache entry")
    lookup.add_argument("--sort", choices=ROW_ORDERS, default="signature", help="Row order")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "lookup":
        return asyncio.run(_lookup(args))
    return _serve(args)


if __name__ == "__main__":
    sys.exit(main())

"""
Transaction inference: signature + raw detail to a normalized row.

Derives status, direction and the tracked wallet's SOL delta from pre/post
balances. Purely structural and total: missing or malformed nested fields
degrade to unknown / None, never an exception. No I/O.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from urllib.parse import quote, urlsplit

from sol_wallet_tracker.analytics.models import TxDirection, TxRow, TxStatus
from sol_wallet_tracker.config.env import LAMPORTS_PER_SOL
from sol_wallet_tracker.solana_rpc.models import SignatureInfo, TransactionDetail

EXPLORER_TX_URL = "https://explorer.solana.com/tx/{signature}"
_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})

_LAMPORTS = Decimal(LAMPORTS_PER_SOL)


def lamports_to_sol(lamports: int) -> Decimal:
    """Exact lamports -> SOL conversion (1 SOL = 1_000_000_000 lamports)."""
    return Decimal(lamports) / _LAMPORTS


def explorer_url(signature: str, endpoint: str) -> str:
    """Solana Explorer link for a signature, pointing at the endpoint's cluster."""
    url = EXPLORER_TX_URL.format(signature=signature)
    host = (urlsplit(endpoint).hostname or "").lower()
    if "devnet" in host:
        return url + "?cluster=devnet"
    if "testnet" in host:
        return url + "?cluster=testnet"
    if host in _LOCAL_HOSTS:
        return url + "?cluster=custom&customUrl=" + quote(endpoint, safe="")
    return url


def _wallet_delta(wallet: str, detail: TransactionDetail) -> Decimal | None:
    addresses = detail.addresses()
    meta = detail.meta
    if addresses is None or meta is None:
        return None
    pre, post = meta.pre_balances, meta.post_balances
    if pre is None or post is None:
        return None
    try:
        index = addresses.index(wallet)
    except ValueError:
        return None
    if index >= len(pre) or index >= len(post):
        return None
    before, after = pre[index], post[index]
    if before is None or after is None:
        return None
    return lamports_to_sol(after - before)


def _status(detail: TransactionDetail) -> TxStatus:
    meta = detail.meta
    if meta is None or not meta.has_err:
        return TxStatus.UNKNOWN
    return TxStatus.SUCCESS if meta.err is None else TxStatus.FAIL


def _direction(delta: Decimal | None) -> TxDirection:
    # A zero delta stays unknown rather than a separate "no transfer" state
    if delta is None or delta == 0:
        return TxDirection.UNKNOWN
    return TxDirection.INCOMING if delta > 0 else TxDirection.OUTGOING


def _to_datetime(unix_seconds: int | None) -> datetime | None:
    if unix_seconds is None:
        return None
    try:
        return datetime.fromtimestamp(unix_seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def infer_transaction_row(
    wallet: str,
    signature_info: SignatureInfo,
    detail: TransactionDetail | None,
    endpoint: str,
) -> TxRow:
    """
    Build the normalized row for one signature.

    detail=None means the ledger returned no record (or the fetch failed);
    the row is then flagged detail_unavailable and only carries what the
    signature listing knows.
    """
    url = explorer_url(signature_info.signature, endpoint)
    if detail is None:
        return TxRow(
            signature=signature_info.signature,
            time=_to_datetime(signature_info.block_time),
            status=TxStatus.UNKNOWN,
            direction=TxDirection.UNKNOWN,
            sol_change=None,
            fee_sol=None,
            slot=signature_info.slot,
            explorer_url=url,
            detail_unavailable=True,
        )

    delta = _wallet_delta(wallet, detail)
    fee = detail.meta.fee if detail.meta is not None else None
    block_time = detail.block_time if detail.block_time is not None else signature_info.block_time
    return TxRow(
        signature=signature_info.signature,
        time=_to_datetime(block_time),
        status=_status(detail),
        direction=_direction(delta),
        sol_change=delta,
        fee_sol=lamports_to_sol(fee) if fee is not None else None,
        slot=detail.slot if detail.slot is not None else signature_info.slot,
        explorer_url=url,
        detail_unavailable=False,
    )

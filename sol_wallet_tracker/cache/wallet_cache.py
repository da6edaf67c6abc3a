"""
Wallet data cache: balance, rows and token balances per (wallet, endpoint, limit).

Entries expire after a fixed TTL and are deleted when read stale. Stored
payloads are validated on read: a structurally invalid entry is a miss
(and is purged), while individually invalid rows or token balances are
dropped so a smaller-but-valid entry is served instead of a wrong one.

Stored JSON layout:
    {"cachedAt": <epoch ms>, "balanceSol": "<decimal>" | null,
     "rows": [{"signature", "time", "status", "direction", "solChange",
               "feeSol", "slot", "explorerUrl", "detailUnavailable"}],
     "tokenBalances": [{"mint", "amount", "decimals", "accountCount"}]}
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence

from sol_wallet_tracker.analytics.models import (
    TokenBalance,
    TxDirection,
    TxRow,
    TxStatus,
    is_valid_decimals,
    parse_raw_amount,
)
from sol_wallet_tracker.cache.store import CacheStoreError, KeyValueStore
from sol_wallet_tracker.config.settings import CACHE_TTL_SECONDS
from sol_wallet_tracker.tracker_logging import get_logger, short_id

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "sol-wallet-tracker-cache:v1"
# ASCII unit separator: never valid in a URL or a base58 address
_KEY_SEP = "\x1f"

_STATUSES = {s.value: s for s in TxStatus}
_DIRECTIONS = {d.value: d for d in TxDirection}


@dataclass(frozen=True)
class WalletCacheEntry:
    cached_at: datetime
    balance_sol: Decimal | None
    rows: tuple[TxRow, ...]
    token_balances: tuple[TokenBalance, ...]


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of validating a stored payload: an entry, or the reason it was rejected."""

    entry: WalletCacheEntry | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.entry is not None


def cache_key(wallet: str, endpoint: str, limit: int) -> str:
    return _KEY_SEP.join((CACHE_KEY_PREFIX, wallet, endpoint, str(limit)))


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def _datetime_to_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


def _decimal_str(value: Decimal | None) -> str | None:
    return format(value, "f") if value is not None else None


def encode_row(row: TxRow) -> dict[str, Any]:
    return {
        "signature": row.signature,
        "time": _format_time(row.time) if row.time is not None else None,
        "status": row.status.value,
        "direction": row.direction.value,
        "solChange": _decimal_str(row.sol_change),
        "feeSol": _decimal_str(row.fee_sol),
        "slot": row.slot,
        "explorerUrl": row.explorer_url,
        "detailUnavailable": row.detail_unavailable,
    }


def encode_token_balance(balance: TokenBalance) -> dict[str, Any]:
    return {
        "mint": balance.mint,
        "amount": str(balance.raw_amount),
        "decimals": balance.decimals,
        "accountCount": balance.account_count,
    }


def encode_entry(entry: WalletCacheEntry) -> dict[str, Any]:
    """Pure, JSON-serializable form of an entry."""
    return {
        "cachedAt": _datetime_to_ms(entry.cached_at),
        "balanceSol": _decimal_str(entry.balance_sol),
        "rows": [encode_row(r) for r in entry.rows],
        "tokenBalances": [encode_token_balance(t) for t in entry.token_balances],
    }


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------


class _Invalid(Exception):
    """A field failed validation; the enclosing item is dropped."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _finite_decimal(value: Any) -> Decimal | None:
    """None stays None; finite numbers / numeric strings become Decimal; anything else is invalid."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise _Invalid("not a number")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as e:
        raise _Invalid("not a number") from e
    if not parsed.is_finite():
        raise _Invalid("not finite")
    return parsed


def _parse_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _Invalid("time must be a string")
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as e:
        raise _Invalid("unparseable time") from e


def decode_row(item: Any) -> TxRow:
    if not isinstance(item, dict):
        raise _Invalid("row is not an object")
    signature = item.get("signature")
    explorer = item.get("explorerUrl")
    status = _STATUSES.get(item.get("status"))
    direction = _DIRECTIONS.get(item.get("direction"))
    if not isinstance(signature, str) or not signature:
        raise _Invalid("signature")
    if not isinstance(explorer, str) or status is None or direction is None:
        raise _Invalid("explorerUrl/status/direction")
    slot = item.get("slot")
    if slot is not None and (not _is_int(slot) or slot < 0):
        raise _Invalid("slot")
    detail_unavailable = item.get("detailUnavailable", False)
    if not isinstance(detail_unavailable, bool):
        raise _Invalid("detailUnavailable")
    return TxRow(
        signature=signature,
        time=_parse_time(item.get("time")),
        status=status,
        direction=direction,
        sol_change=_finite_decimal(item.get("solChange")),
        fee_sol=_finite_decimal(item.get("feeSol")),
        slot=slot,
        explorer_url=explorer,
        detail_unavailable=detail_unavailable,
    )


def decode_token_balance(item: Any) -> TokenBalance:
    if not isinstance(item, dict):
        raise _Invalid("token balance is not an object")
    mint = item.get("mint")
    raw_amount = parse_raw_amount(item.get("amount"))
    decimals = item.get("decimals")
    account_count = item.get("accountCount")
    if not isinstance(mint, str) or not mint:
        raise _Invalid("mint")
    if raw_amount is None:
        raise _Invalid("amount")
    if not is_valid_decimals(decimals):
        raise _Invalid("decimals")
    if not _is_int(account_count) or account_count < 1:
        raise _Invalid("accountCount")
    return TokenBalance(
        mint=mint, raw_amount=raw_amount, decimals=decimals, account_count=account_count
    )


def decode_entry(payload: Any) -> DecodeResult:
    """
    Validate a stored payload. Never raises.

    Rejects the whole entry for a wrong top-level shape; drops individual
    rows / token balances that fail validation (and repeated signatures).
    """
    if not isinstance(payload, dict):
        return DecodeResult(reason="payload is not an object")
    cached_at_ms = payload.get("cachedAt")
    if not _is_int(cached_at_ms) or cached_at_ms < 0:
        return DecodeResult(reason="cachedAt is not an epoch-millisecond integer")
    try:
        cached_at = datetime.fromtimestamp(cached_at_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return DecodeResult(reason="cachedAt is out of range")
    raw_rows = payload.get("rows")
    raw_tokens = payload.get("tokenBalances")
    if not isinstance(raw_rows, list) or not isinstance(raw_tokens, list):
        return DecodeResult(reason="rows/tokenBalances are not lists")
    try:
        balance = _finite_decimal(payload.get("balanceSol"))
    except _Invalid:
        balance = None

    rows: list[TxRow] = []
    seen: set[str] = set()
    for item in raw_rows:
        try:
            row = decode_row(item)
        except _Invalid:
            continue
        if row.signature in seen:
            continue
        seen.add(row.signature)
        rows.append(row)

    tokens: list[TokenBalance] = []
    mints: set[str] = set()
    for item in raw_tokens:
        try:
            token = decode_token_balance(item)
        except _Invalid:
            continue
        if token.mint in mints:
            continue
        mints.add(token.mint)
        tokens.append(token)

    dropped = (len(raw_rows) - len(rows)) + (len(raw_tokens) - len(tokens))
    if dropped:
        logger.debug("cache_items_dropped", count=dropped)
    return DecodeResult(
        entry=WalletCacheEntry(
            cached_at=cached_at,
            balance_sol=balance,
            rows=tuple(rows),
            token_balances=tuple(tokens),
        )
    )


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


class WalletCache:
    """
    TTL cache over a KeyValueStore.

    Only the orchestrator writes; one writer per key at a time.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _purge(self, key: str) -> None:
        try:
            self._store.delete(key)
        except CacheStoreError as e:
            logger.warning("cache_purge_failed", error=str(e))

    def get(self, wallet: str, endpoint: str, limit: int) -> WalletCacheEntry | None:
        """Return a fresh, valid entry or None; stale and invalid entries are deleted."""
        key = cache_key(wallet, endpoint, limit)
        try:
            raw = self._store.get(key)
        except CacheStoreError as e:
            logger.warning("cache_read_failed", wallet_id=short_id(wallet), error=str(e))
            return None
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except (ValueError, RecursionError):
            payload = None
        result = decode_entry(payload)
        if not result.ok:
            logger.info("cache_entry_rejected", wallet_id=short_id(wallet), reason=result.reason)
            self._purge(key)
            return None
        entry = result.entry
        age_ms = self._now_ms() - _datetime_to_ms(entry.cached_at)
        if age_ms > self._ttl_ms:
            logger.debug("cache_entry_expired", wallet_id=short_id(wallet), age_ms=age_ms)
            self._purge(key)
            return None
        return entry

    def put(
        self,
        wallet: str,
        endpoint: str,
        limit: int,
        balance_sol: Decimal | None,
        rows: Sequence[TxRow],
        token_balances: Sequence[TokenBalance],
    ) -> WalletCacheEntry:
        """Store a fresh entry; a store failure is logged and the entry still returned."""
        entry = WalletCacheEntry(
            cached_at=datetime.fromtimestamp(self._now_ms() / 1000, tz=timezone.utc),
            balance_sol=balance_sol,
            rows=tuple(rows),
            token_balances=tuple(token_balances),
        )
        key = cache_key(wallet, endpoint, limit)
        try:
            self._store.set(key, json.dumps(encode_entry(entry)))
        except CacheStoreError as e:
            logger.warning("cache_write_failed", wallet_id=short_id(wallet), error=str(e))
        return entry

    def invalidate(self, wallet: str, endpoint: str, limit: int) -> None:
        self._purge(cache_key(wallet, endpoint, limit))

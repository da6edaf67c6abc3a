"""
Data models for Solana JSON-RPC payloads.

- SignatureInfo: one getSignaturesForAddress item.
- Account keys: bare base58 strings (json encoding) or structured keys
  (jsonParsed encoding), both normalized to an address.
- TransactionDetail: the subset of a getTransaction result used for
  balance-delta inference, parsed without ever raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

_CONFIRMATION_STATUSES = frozenset({"processed", "confirmed", "finalized"})


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


@dataclass(frozen=True)
class SignatureInfo:
    """
    Transaction signature info from getSignaturesForAddress.

    The RPC returns these newest first; callers keep that order.
    """

    signature: str
    slot: int
    err: Any  # None if success; dict/object from RPC if failed
    block_time: int | None  # Unix timestamp; None if not available
    memo: str | None
    confirmation_status: str | None  # processed | confirmed | finalized

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureInfo":
        """Build from a single getSignaturesForAddress result item; raises on malformed items."""
        signature = item["signature"]
        if not isinstance(signature, str) or not signature:
            raise TypeError("signature must be a non-empty string")
        slot = _int_or_none(item.get("slot"))
        if slot is None:
            raise TypeError("slot must be an integer")
        memo = item.get("memo")
        status = item.get("confirmationStatus")
        return cls(
            signature=signature,
            slot=slot,
            err=item.get("err"),
            block_time=_int_or_none(item.get("blockTime")),
            memo=memo if isinstance(memo, str) else None,
            confirmation_status=status if status in _CONFIRMATION_STATUSES else None,
        )


@dataclass(frozen=True)
class BareAccountKey:
    """Account key as returned with encoding=json: a base58 string."""

    address: str

    def normalize(self) -> str:
        return self.address


@dataclass(frozen=True)
class ParsedAccountKey:
    """Account key as returned with encoding=jsonParsed."""

    pubkey: str
    signer: bool | None = None
    writable: bool | None = None
    source: str | None = None  # transaction | lookupTable

    def normalize(self) -> str:
        return self.pubkey


AccountKey = Union[BareAccountKey, ParsedAccountKey]


def parse_account_key(raw: Any) -> AccountKey | None:
    """Return the account-key variant for a raw entry, or None if unrecognized."""
    if isinstance(raw, str):
        return BareAccountKey(raw)
    if isinstance(raw, dict) and isinstance(raw.get("pubkey"), str):
        signer = raw.get("signer")
        writable = raw.get("writable")
        source = raw.get("source")
        return ParsedAccountKey(
            pubkey=raw["pubkey"],
            signer=signer if isinstance(signer, bool) else None,
            writable=writable if isinstance(writable, bool) else None,
            source=source if isinstance(source, str) else None,
        )
    return None


def _balances(raw: Any) -> tuple[int | None, ...] | None:
    if not isinstance(raw, list):
        return None
    return tuple(_int_or_none(v) for v in raw)


@dataclass(frozen=True)
class TransactionMeta:
    """Status and balance metadata of a transaction."""

    has_err: bool
    """True when the `err` field is present at all (null or not)."""
    err: Any
    fee: int | None
    pre_balances: tuple[int | None, ...] | None
    post_balances: tuple[int | None, ...] | None

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "TransactionMeta":
        return cls(
            has_err="err" in raw,
            err=raw.get("err"),
            fee=_int_or_none(raw.get("fee")),
            pre_balances=_balances(raw.get("preBalances")),
            post_balances=_balances(raw.get("postBalances")),
        )


@dataclass(frozen=True)
class TransactionDetail:
    """
    getTransaction result reduced to what inference needs.

    Missing or malformed nested fields become None; from_rpc never raises.
    """

    slot: int | None
    block_time: int | None
    meta: TransactionMeta | None
    account_keys: tuple[AccountKey | None, ...] | None

    def addresses(self) -> list[str | None] | None:
        """Normalized account addresses by position; None where a key was unrecognized."""
        if self.account_keys is None:
            return None
        return [k.normalize() if k is not None else None for k in self.account_keys]

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "TransactionDetail":
        meta_raw = raw.get("meta")
        meta = TransactionMeta.from_rpc(meta_raw) if isinstance(meta_raw, dict) else None
        return cls(
            slot=_int_or_none(raw.get("slot")),
            block_time=_int_or_none(raw.get("blockTime")),
            meta=meta,
            account_keys=_account_keys(raw, meta_raw if isinstance(meta_raw, dict) else None),
        )


def _account_keys(
    raw: dict[str, Any],
    meta: dict[str, Any] | None,
) -> tuple[AccountKey | None, ...] | None:
    """
    Resolve message.accountKeys. For bare-string keys (json encoding of a
    versioned transaction), meta.loadedAddresses (writable + readonly) follow
    the static keys, matching the balance array layout.
    """
    tx_obj = raw.get("transaction")
    if not isinstance(tx_obj, dict):
        return None
    message = tx_obj.get("message")
    if not isinstance(message, dict):
        return None
    keys = message.get("accountKeys")
    if not isinstance(keys, list):
        return None
    out = [parse_account_key(k) for k in keys]
    if keys and all(isinstance(k, str) for k in keys) and meta is not None:
        loaded = meta.get("loadedAddresses")
        if isinstance(loaded, dict):
            for role in ("writable", "readonly"):
                addrs = loaded.get(role)
                if isinstance(addrs, list):
                    out.extend(parse_account_key(a) for a in addrs)
    return tuple(out)

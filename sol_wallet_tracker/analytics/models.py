"""
Normalized output models consumed by the API server and clients.

Rows and token balances are immutable once built; one row per signature.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

# SPL mints store decimals as u8
MAX_TOKEN_DECIMALS = 255


def parse_raw_amount(value: Any) -> int | None:
    """Integer base-unit amount from a digit string; None for anything else."""
    if not isinstance(value, str) or not (value.isascii() and value.isdigit()):
        return None
    try:
        return int(value)
    except ValueError:
        # longer than the interpreter's int conversion limit
        return None


def is_valid_decimals(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_TOKEN_DECIMALS
    )


def format_token_amount(raw_amount: int, decimals: int) -> str:
    """Render an integer base-unit amount with `decimals` places, trailing zeros trimmed."""
    sign = "-" if raw_amount < 0 else ""
    whole, frac = divmod(abs(raw_amount), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}" if frac_str else f"{sign}{whole}"


class TxStatus(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    UNKNOWN = "unknown"


class TxDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TxRow:
    """One transaction as seen from the tracked wallet."""

    signature: str
    time: datetime | None
    """Block time (UTC); None if neither the detail nor the signature had one."""
    status: TxStatus
    direction: TxDirection
    sol_change: Decimal | None
    """Signed SOL delta of the tracked wallet; None if not computable."""
    fee_sol: Decimal | None
    slot: int | None
    explorer_url: str
    detail_unavailable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "time": self.time.isoformat() if self.time is not None else None,
            "status": self.status.value,
            "direction": self.direction.value,
            "sol_change": format(self.sol_change, "f") if self.sol_change is not None else None,
            "fee_sol": format(self.fee_sol, "f") if self.fee_sol is not None else None,
            "slot": self.slot,
            "explorer_url": self.explorer_url,
            "detail_unavailable": self.detail_unavailable,
        }


@dataclass(frozen=True)
class TokenBalance:
    """SPL token holdings of one mint, summed over all of the wallet's token accounts."""

    mint: str
    raw_amount: int
    decimals: int
    account_count: int

    @property
    def amount(self) -> str:
        """Display amount, e.g. raw 3500 at 6 decimals -> "0.0035"."""
        return format_token_amount(self.raw_amount, self.decimals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "raw_amount": str(self.raw_amount),
            "amount": self.amount,
            "decimals": self.decimals,
            "account_count": self.account_count,
        }

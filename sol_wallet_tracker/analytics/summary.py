"""
Row summaries: net SOL change, success rate, and sort orders.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sol_wallet_tracker.analytics.models import TxRow, TxStatus


@dataclass(frozen=True)
class RowSummary:
    tx_count: int
    known_change_count: int
    net_sol_change: Decimal
    success_rate: float | None
    """Percent of success over success + fail; None when no row is decided."""


def sum_known_sol_changes(rows: Iterable[TxRow]) -> Decimal:
    return sum((r.sol_change for r in rows if r.sol_change is not None), Decimal(0))


def known_change_count(rows: Iterable[TxRow]) -> int:
    return sum(1 for r in rows if r.sol_change is not None)


def success_rate(rows: Iterable[TxRow]) -> float | None:
    success = fail = 0
    for r in rows:
        if r.status is TxStatus.SUCCESS:
            success += 1
        elif r.status is TxStatus.FAIL:
            fail += 1
    decided = success + fail
    if decided == 0:
        return None
    return success / decided * 100.0


def _newest_first_key(row: TxRow) -> tuple[float, int]:
    ts = row.time.timestamp() if row.time is not None else 0.0
    return (ts, row.slot or 0)


def sort_rows_newest_first(rows: Iterable[TxRow]) -> list[TxRow]:
    """Time descending, then slot descending; missing values sort as 0."""
    return sorted(rows, key=_newest_first_key, reverse=True)


def sort_rows_by_sol_delta(rows: Iterable[TxRow]) -> list[TxRow]:
    """Known deltas largest first, then rows without a delta newest first."""
    rows = list(rows)
    known = sorted(
        (r for r in rows if r.sol_change is not None),
        key=lambda r: r.sol_change,
        reverse=True,
    )
    unknown = sort_rows_newest_first(r for r in rows if r.sol_change is None)
    return known + unknown


def summarize_rows(rows: Iterable[TxRow]) -> RowSummary:
    rows = list(rows)
    return RowSummary(
        tx_count=len(rows),
        known_change_count=known_change_count(rows),
        net_sol_change=sum_known_sol_changes(rows),
        success_rate=success_rate(rows),
    )


# "signature" keeps the RPC listing order
ROW_ORDERS = ("signature", "newest", "sol_change")


def sort_rows(rows: Iterable[TxRow], order: str) -> list[TxRow]:
    if order == "signature":
        return list(rows)
    if order == "newest":
        return sort_rows_newest_first(rows)
    if order == "sol_change":
        return sort_rows_by_sol_delta(rows)
    raise ValueError(f"unknown row order {order!r}; expected one of {ROW_ORDERS}")

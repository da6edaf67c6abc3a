"""
Analytics package: turns raw RPC data into normalized rows and balances.

Inference, token aggregation and summaries are pure; no network or storage.
"""

from sol_wallet_tracker.analytics.inference import (
    explorer_url,
    infer_transaction_row,
    lamports_to_sol,
)
from sol_wallet_tracker.analytics.models import (
    TokenBalance,
    TxDirection,
    TxRow,
    TxStatus,
    format_token_amount,
)
from sol_wallet_tracker.analytics.summary import (
    ROW_ORDERS,
    RowSummary,
    sort_rows,
    sort_rows_by_sol_delta,
    sort_rows_newest_first,
    summarize_rows,
)
from sol_wallet_tracker.analytics.token_balances import aggregate_token_balances

__all__ = [
    "ROW_ORDERS",
    "RowSummary",
    "TokenBalance",
    "TxDirection",
    "TxRow",
    "TxStatus",
    "aggregate_token_balances",
    "explorer_url",
    "format_token_amount",
    "infer_transaction_row",
    "lamports_to_sol",
    "sort_rows",
    "sort_rows_by_sol_delta",
    "sort_rows_newest_first",
    "summarize_rows",
]

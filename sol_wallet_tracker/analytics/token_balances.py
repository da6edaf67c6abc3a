"""
SPL token balance aggregation from getTokenAccountsByOwner (jsonParsed).

Sums raw integer amounts per mint across all token accounts the wallet owns.
Amounts are Python ints so large supplies never drift. Safe dict parsing:
account.data.parsed.info.{mint, tokenAmount.amount, tokenAmount.decimals};
accounts that do not match that shape are skipped.
"""

from __future__ import annotations

from typing import Any

from sol_wallet_tracker.analytics.models import TokenBalance, is_valid_decimals, parse_raw_amount
from sol_wallet_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


def _parsed_info(account: dict[str, Any]) -> dict[str, Any] | None:
    acct = account.get("account")
    data = acct.get("data") if isinstance(acct, dict) else None
    parsed = data.get("parsed") if isinstance(data, dict) else None
    info = parsed.get("info") if isinstance(parsed, dict) else None
    return info if isinstance(info, dict) else None


def _parse_token_account(account: Any) -> tuple[str, int, int] | None:
    """Return (mint, raw_amount, decimals) or None when the account is malformed."""
    if not isinstance(account, dict):
        return None
    info = _parsed_info(account)
    if info is None:
        return None
    mint = info.get("mint")
    token_amount = info.get("tokenAmount")
    if not isinstance(mint, str) or not mint or not isinstance(token_amount, dict):
        return None
    raw_amount = parse_raw_amount(token_amount.get("amount"))
    decimals = token_amount.get("decimals")
    if raw_amount is None or not is_valid_decimals(decimals):
        return None
    return mint, raw_amount, decimals


def aggregate_token_balances(raw_accounts: list[Any]) -> list[TokenBalance]:
    """
    Group token accounts by mint and sum their raw amounts.

    Decimals come from the first account seen for a mint. Output is sorted by mint.
    """
    totals: dict[str, list[int]] = {}  # mint -> [raw_amount, decimals, account_count]
    skipped = 0
    for account in raw_accounts:
        parsed = _parse_token_account(account)
        if parsed is None:
            skipped += 1
            continue
        mint, raw_amount, decimals = parsed
        entry = totals.get(mint)
        if entry is None:
            totals[mint] = [raw_amount, decimals, 1]
            continue
        if entry[1] != decimals:
            logger.debug("token_decimals_mismatch", mint=mint, first=entry[1], other=decimals)
        entry[0] += raw_amount
        entry[2] += 1
    if skipped:
        logger.debug("token_accounts_skipped", count=skipped)
    return [
        TokenBalance(mint=mint, raw_amount=amount, decimals=decimals, account_count=count)
        for mint, (amount, decimals, count) in sorted(totals.items())
    ]

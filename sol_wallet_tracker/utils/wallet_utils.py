"""Wallet and endpoint validation utilities."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from solders.pubkey import Pubkey

SOLANA_ADDRESS_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def validate_wallet_address(address: str) -> str | None:
    """Return an error message for an invalid address, or None if it is valid."""
    value = (address or "").strip()
    if not value:
        return "Wallet address is required."
    if not SOLANA_ADDRESS_PATTERN.match(value):
        return "Enter a valid Solana wallet address (base58, 32-44 chars)."
    try:
        Pubkey.from_string(value)
    except Exception:
        return "Enter a valid Solana wallet address (base58, 32-44 chars)."
    return None


def validate_endpoint_url(value: str) -> str | None:
    """Return an error message for an unusable RPC URL, or None if it is valid."""
    trimmed = (value or "").strip()
    if not trimmed:
        return "RPC endpoint is required."
    try:
        parts = urlsplit(trimmed)
    except ValueError:
        return "Enter a valid RPC URL."
    if parts.scheme not in ("http", "https"):
        return "RPC URL must start with http:// or https://."
    if not parts.hostname:
        return "Enter a valid RPC URL."
    return None

"""Input validation helpers for wallet addresses and RPC endpoints."""

from sol_wallet_tracker.utils.wallet_utils import (
    validate_endpoint_url,
    validate_wallet_address,
)

__all__ = ["validate_endpoint_url", "validate_wallet_address"]

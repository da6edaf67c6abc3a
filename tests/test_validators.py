"""
Tests for wallet address and RPC endpoint validation.
"""

from __future__ import annotations

import pytest

from sol_wallet_tracker.utils import validate_endpoint_url, validate_wallet_address

from rpc_fakes import OTHER_WALLET, VALID_WALLET


@pytest.mark.parametrize("address", [VALID_WALLET, OTHER_WALLET, f"  {VALID_WALLET}  "])
def test_valid_addresses(address):
    assert validate_wallet_address(address) is None


def test_empty_address():
    assert validate_wallet_address("   ") == "Wallet address is required."


@pytest.mark.parametrize("address", ["short", "0" * 44, VALID_WALLET + "x", "I" * 40])
def test_invalid_addresses(address):
    assert validate_wallet_address(address) is not None


@pytest.mark.parametrize(
    "url",
    ["https://api.mainnet-beta.solana.com", "http://localhost:8899", " https://rpc.ankr.com/solana "],
)
def test_valid_endpoints(url):
    assert validate_endpoint_url(url) is None


@pytest.mark.parametrize(
    "url,message",
    [
        ("", "RPC endpoint is required."),
        ("ftp://example.com", "RPC URL must start with http:// or https://."),
        ("api.mainnet-beta.solana.com", "RPC URL must start with http:// or https://."),
        ("https://", "Enter a valid RPC URL."),
    ],
)
def test_invalid_endpoints(url, message):
    assert validate_endpoint_url(url) == message

"""
Pytest fixtures for wallet tracker tests.
"""

from __future__ import annotations

import pytest

from rpc_fakes import (
    OTHER_WALLET,
    PAYER,
    VALID_WALLET,
    FakeLedger,
    make_signature,
    make_token_account,
    make_transaction,
)


@pytest.fixture
def ledger() -> FakeLedger:
    """Ledger with one wallet holding three signatures and matching details."""
    fake = FakeLedger()
    fake.signatures[VALID_WALLET] = [
        make_signature("sigC", slot=300, block_time=1_700_000_300),
        make_signature("sigB", slot=200, block_time=1_700_000_200),
        make_signature("sigA", slot=100, block_time=1_700_000_100),
    ]
    fake.transactions["sigC"] = make_transaction(
        [PAYER, VALID_WALLET], [5_000_000_000, 3_000_000_000], [4_899_995_000, 3_100_000_000], slot=300
    )
    fake.transactions["sigB"] = make_transaction(
        [VALID_WALLET, OTHER_WALLET], [2_000_000_000, 0], [1_499_995_000, 500_000_000], slot=200
    )
    fake.transactions["sigA"] = None
    fake.token_accounts = [
        make_token_account("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", "1000", 6),
        make_token_account("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", "2500", 6),
    ]
    return fake

"""
Pytest tests for the FastAPI wallet endpoints. RPC traffic goes through
FakeLedger; the cache is in memory.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from sol_wallet_tracker.api_server.server import create_app
from sol_wallet_tracker.cache import MemoryStore, WalletCache
from sol_wallet_tracker.config import RPC_ENDPOINT_PRESETS, TrackerSettings
from sol_wallet_tracker.core.exceptions import RATE_LIMIT_MESSAGE

from rpc_fakes import ENDPOINT, VALID_WALLET, make_signature, make_transaction


@pytest.fixture
def client(ledger):
    app = create_app(
        TrackerSettings(rpc_url=ENDPOINT),
        rpc=ledger.client(),
        cache=WalletCache(MemoryStore()),
    )
    with TestClient(app) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_endpoint_presets(client):
    r = client.get("/endpoints")
    assert r.status_code == 200
    assert [p["url"] for p in r.json()] == [url for _, url in RPC_ENDPOINT_PRESETS]


def test_wallet_lookup(client, ledger):
    r = client.get(f"/wallet/{VALID_WALLET}")
    assert r.status_code == 200
    data = r.json()
    assert data["wallet"] == VALID_WALLET
    assert data["endpoint"] == ENDPOINT
    assert data["limit"] == 20
    assert data["balance_sol"] == "2.5"
    assert [row["signature"] for row in data["rows"]] == ["sigC", "sigB", "sigA"]
    assert data["rows"][0]["direction"] == "incoming"
    assert data["rows"][2]["detail_unavailable"] is True
    assert data["token_balances"][0]["amount"] == "0.0035"
    assert data["from_cache"] is False
    assert "error" not in data
    assert data["summary"] == {
        "tx_count": 3,
        "known_change_count": 2,
        "net_sol_change": "-0.400005",
        "success_rate": 100.0,
    }


def test_second_lookup_served_from_cache(client, ledger):
    client.get(f"/wallet/{VALID_WALLET}")
    calls = len(ledger.calls)
    r = client.get(f"/wallet/{VALID_WALLET}")
    assert r.json()["from_cache"] is True
    assert len(ledger.calls) == calls

    r = client.get(f"/wallet/{VALID_WALLET}", params={"refresh": "true"})
    assert r.json()["from_cache"] is False
    assert len(ledger.calls) > calls


def test_custom_endpoint_is_used(client, ledger):
    r = client.get(f"/wallet/{VALID_WALLET}", params={"endpoint": "https://api.devnet.solana.com"})
    assert r.status_code == 200
    assert r.json()["rows"][0]["explorer_url"].endswith("?cluster=devnet")


@pytest.mark.parametrize(
    "sort,expected",
    [
        ("signature", ["sigB", "sigA", "sigC"]),
        ("newest", ["sigC", "sigB", "sigA"]),
        ("sol_change", ["sigA", "sigC", "sigB"]),
    ],
)
def test_row_sort_orders(client, ledger, sort, expected):
    ledger.signatures[VALID_WALLET] = [
        make_signature("sigB", slot=200, block_time=1_700_000_200),
        make_signature("sigA", slot=100, block_time=1_700_000_100),
        make_signature("sigC", slot=300, block_time=1_700_000_300),
    ]
    ledger.transactions["sigA"] = make_transaction(
        [VALID_WALLET], [1_000_000_000], [2_000_000_000], slot=100
    )
    r = client.get(f"/wallet/{VALID_WALLET}", params={"sort": sort})
    assert r.status_code == 200
    data = r.json()
    assert [row["signature"] for row in data["rows"]] == expected
    assert data["summary"]["tx_count"] == 3


@pytest.mark.parametrize("address", ["notawallet!", "0OIl" * 10, "1" * 20])
def test_invalid_address_is_400(client, address):
    r = client.get(f"/wallet/{address}")
    assert r.status_code == 400
    assert "Solana wallet address" in r.json()["detail"]


def test_invalid_endpoint_is_400(client):
    r = client.get(f"/wallet/{VALID_WALLET}", params={"endpoint": "ftp://rpc.example.test"})
    assert r.status_code == 400


@pytest.mark.parametrize("params", [{"limit": 7}, {"concurrency": 4}, {"sort": "bogus"}])
def test_disallowed_options_are_422(client, params):
    r = client.get(f"/wallet/{VALID_WALLET}", params=params)
    assert r.status_code == 422


def test_rpc_failure_is_502(client, ledger):
    ledger.method_errors["getBalance"] = (-32005, "Node is behind")
    r = client.get(f"/wallet/{VALID_WALLET}")
    assert r.status_code == 502
    assert r.json()["detail"] == RATE_LIMIT_MESSAGE

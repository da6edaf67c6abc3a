"""
Tests for the TTL wallet cache, payload validation and the SQLite store.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sol_wallet_tracker.analytics import TokenBalance, TxDirection, TxRow, TxStatus
from sol_wallet_tracker.cache import (
    CacheStoreError,
    MemoryStore,
    SQLiteStore,
    WalletCache,
    cache_key,
    decode_entry,
    encode_entry,
)

from rpc_fakes import ENDPOINT, VALID_WALLET

USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _rows() -> list[TxRow]:
    return [
        TxRow(
            signature="sigB",
            time=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
            status=TxStatus.SUCCESS,
            direction=TxDirection.INCOMING,
            sol_change=Decimal("0.1"),
            fee_sol=Decimal("0.000005"),
            slot=200,
            explorer_url="https://explorer.solana.com/tx/sigB",
        ),
        TxRow(
            signature="sigA",
            time=None,
            status=TxStatus.UNKNOWN,
            direction=TxDirection.UNKNOWN,
            sol_change=None,
            fee_sol=None,
            slot=None,
            explorer_url="https://explorer.solana.com/tx/sigA",
            detail_unavailable=True,
        ),
    ]


def _tokens() -> list[TokenBalance]:
    return [TokenBalance(mint=USDC, raw_amount=3500, decimals=6, account_count=2)]


def _cache(store=None, clock=None) -> WalletCache:
    return WalletCache(store if store is not None else MemoryStore(), clock=clock or FakeClock())


def test_put_then_get_round_trips():
    cache = _cache()
    written = cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("2.5"), _rows(), _tokens())
    entry = cache.get(VALID_WALLET, ENDPOINT, 20)
    assert entry == written
    assert entry.balance_sol == Decimal("2.5")
    assert entry.rows[1].detail_unavailable
    assert entry.token_balances[0].amount == "0.0035"


def test_key_includes_limit_and_endpoint():
    cache = _cache()
    cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("1"), _rows(), [])
    assert cache.get(VALID_WALLET, ENDPOINT, 50) is None
    assert cache.get(VALID_WALLET, "https://api.devnet.solana.com", 20) is None


def test_cache_key_fields_do_not_collide():
    assert cache_key("a", "b:c", 1) != cache_key("a:b", "c", 1)


def test_encoded_payload_layout():
    cache = _cache()
    entry = cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("0.000000005"), _rows(), _tokens())
    payload = encode_entry(entry)
    assert payload["cachedAt"] == 1_700_000_000_000
    assert payload["balanceSol"] == "0.000000005"
    assert payload["rows"][0]["time"] == "2023-11-14T22:13:20+00:00"
    assert payload["rows"][0]["solChange"] == "0.1"
    assert payload["tokenBalances"][0] == {
        "mint": USDC,
        "amount": "3500",
        "decimals": 6,
        "accountCount": 2,
    }
    assert encode_entry(decode_entry(json.loads(json.dumps(payload))).entry) == payload


def test_entry_served_until_ttl_then_deleted():
    store = MemoryStore()
    clock = FakeClock()
    cache = _cache(store, clock)
    cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("1"), _rows(), [])

    clock.now += 300
    assert cache.get(VALID_WALLET, ENDPOINT, 20) is not None

    clock.now += 60
    assert cache.get(VALID_WALLET, ENDPOINT, 20) is None
    assert cache_key(VALID_WALLET, ENDPOINT, 20) not in store


def test_unparseable_json_is_miss_and_purged():
    store = MemoryStore()
    key = cache_key(VALID_WALLET, ENDPOINT, 20)
    store.set(key, "{not json")
    assert _cache(store).get(VALID_WALLET, ENDPOINT, 20) is None
    assert key not in store


def test_deeply_nested_json_is_miss():
    store = MemoryStore()
    key = cache_key(VALID_WALLET, ENDPOINT, 20)
    store.set(key, "[" * 100_000 + "]" * 100_000)
    assert _cache(store).get(VALID_WALLET, ENDPOINT, 20) is None
    assert key not in store


def test_get_drops_rows_with_out_of_range_time():
    store = MemoryStore()
    clock = FakeClock()
    cache = _cache(store, clock)
    payload = encode_entry(cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("1"), _rows(), _tokens()))
    payload["rows"][0]["time"] = "9999-12-31T23:59:59-05:00"
    payload["tokenBalances"].append({"mint": "big", "amount": "9" * 5000, "decimals": 0, "accountCount": 1})
    store.set(cache_key(VALID_WALLET, ENDPOINT, 20), json.dumps(payload))

    entry = cache.get(VALID_WALLET, ENDPOINT, 20)
    assert [r.signature for r in entry.rows] == ["sigA"]
    assert [t.mint for t in entry.token_balances] == [USDC]


@pytest.mark.parametrize(
    "payload",
    [
        None,
        1,
        "x",
        [],
        {"cachedAt": True, "rows": [], "tokenBalances": []},
        {"cachedAt": "1700000000000", "rows": [], "tokenBalances": []},
        {"cachedAt": -5, "rows": [], "tokenBalances": []},
        {"cachedAt": 1_700_000_000_000, "rows": {}, "tokenBalances": []},
        {"cachedAt": 1_700_000_000_000, "rows": []},
    ],
)
def test_invalid_top_level_payload_is_rejected(payload):
    result = decode_entry(payload)
    assert result.entry is None
    assert result.reason
    assert not result.ok


def _payload_with(rows=None, tokens=None):
    cache = _cache()
    payload = encode_entry(cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("1"), _rows(), _tokens()))
    if rows is not None:
        payload["rows"].extend(rows)
    if tokens is not None:
        payload["tokenBalances"].extend(tokens)
    return payload


@pytest.mark.parametrize(
    "bad_row",
    [
        {"signature": "x1", "status": "success", "direction": "incoming", "explorerUrl": "u", "solChange": "NaN"},
        {"signature": "x2", "status": "success", "direction": "incoming", "explorerUrl": "u", "solChange": "Infinity"},
        {"signature": "x3", "status": "done", "direction": "incoming", "explorerUrl": "u"},
        {"signature": "x4", "status": "success", "direction": "incoming", "explorerUrl": "u", "slot": -1},
        {"signature": "x5", "status": "success", "direction": "incoming", "explorerUrl": "u", "time": "yesterday"},
        {"signature": "", "status": "success", "direction": "incoming", "explorerUrl": "u"},
        {"signature": "x6", "status": "success", "direction": "incoming", "explorerUrl": "u", "feeSol": [1]},
        {"signature": "x7", "status": "success", "direction": "incoming", "explorerUrl": "u", "time": "9999-12-31T23:59:59-05:00"},
        {"signature": "x8", "status": "success", "direction": "incoming", "explorerUrl": "u", "time": "0001-01-01T00:00:00+05:00"},
        "row",
    ],
)
def test_invalid_rows_are_dropped(bad_row):
    entry = decode_entry(_payload_with(rows=[bad_row])).entry
    assert [r.signature for r in entry.rows] == ["sigB", "sigA"]


def test_duplicate_signatures_keep_first():
    duplicate = dict(_payload_with()["rows"][0], solChange="9")
    entry = decode_entry(_payload_with(rows=[duplicate])).entry
    assert len(entry.rows) == 2
    assert entry.rows[0].sol_change == Decimal("0.1")


def test_missing_detail_unavailable_defaults_false():
    row = {"signature": "x", "status": "fail", "direction": "outgoing", "explorerUrl": "u"}
    entry = decode_entry(_payload_with(rows=[row])).entry
    assert entry.rows[-1].detail_unavailable is False


@pytest.mark.parametrize(
    "bad_token",
    [
        {"mint": "m1", "amount": "-5", "decimals": 6, "accountCount": 1},
        {"mint": "m2", "amount": "5", "decimals": -1, "accountCount": 1},
        {"mint": "m3", "amount": "5", "decimals": 6, "accountCount": 0},
        {"mint": "m4", "amount": 5, "decimals": 6, "accountCount": 1},
        {"mint": USDC, "amount": "1", "decimals": 6, "accountCount": 1},
        {"mint": "m5", "amount": "9" * 5000, "decimals": 0, "accountCount": 1},
        {"mint": "m6", "amount": "5", "decimals": 256, "accountCount": 1},
        {"mint": "m7", "amount": "\u00b2", "decimals": 0, "accountCount": 1},
    ],
)
def test_invalid_token_balances_are_dropped(bad_token):
    entry = decode_entry(_payload_with(tokens=[bad_token])).entry
    assert [t.mint for t in entry.token_balances] == [USDC]
    assert entry.token_balances[0].raw_amount == 3500


def test_invalid_balance_becomes_none():
    payload = _payload_with()
    payload["balanceSol"] = "NaN"
    assert decode_entry(payload).entry.balance_sol is None


def test_invalidate_removes_entry():
    cache = _cache()
    cache.put(VALID_WALLET, ENDPOINT, 20, None, [], [])
    cache.invalidate(VALID_WALLET, ENDPOINT, 20)
    assert cache.get(VALID_WALLET, ENDPOINT, 20) is None


class BrokenStore(MemoryStore):
    def get(self, key):
        raise CacheStoreError("disk gone")

    def set(self, key, value):
        raise CacheStoreError("disk gone")


def test_store_failures_degrade_to_miss():
    cache = _cache(BrokenStore())
    entry = cache.put(VALID_WALLET, ENDPOINT, 20, Decimal("1"), _rows(), [])
    assert entry.balance_sol == Decimal("1")
    assert cache.get(VALID_WALLET, ENDPOINT, 20) is None


def test_sqlite_store_persists_across_instances(tmp_path):
    db = tmp_path / "cache" / "wallet_cache.db"
    clock = FakeClock()
    _cache(SQLiteStore(db), clock).put(VALID_WALLET, ENDPOINT, 20, Decimal("3"), _rows(), _tokens())

    entry = _cache(SQLiteStore(db), clock).get(VALID_WALLET, ENDPOINT, 20)
    assert entry is not None
    assert entry.balance_sol == Decimal("3")
    assert len(entry.rows) == 2


def test_sqlite_store_overwrite_and_delete(tmp_path):
    store = SQLiteStore(tmp_path / "kv.db")
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    store.delete("k")
    assert store.get("k") is None
    store.delete("k")

"""
Tests for environment-driven settings.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from sol_wallet_tracker.config import ConfigError, load_settings
from sol_wallet_tracker.config.env import MAINNET_RPC_URL, get_rpc_url, mask_rpc_url

_ENV_VARS = (
    "SOLANA_RPC_URL",
    "SOLANA_NETWORK",
    "HELIUS_API_KEY",
    "TRACKER_TX_LIMIT",
    "TRACKER_CONCURRENCY",
    "TRACKER_REQUEST_TIMEOUT_SEC",
    "TRACKER_CACHE_DB_PATH",
    "API_HOST",
    "API_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.rpc_url == MAINNET_RPC_URL
    assert settings.tx_limit == 20
    assert settings.concurrency == 3
    assert settings.cache_db_path is None
    assert settings.api_port == 8000


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.test")
    monkeypatch.setenv("TRACKER_TX_LIMIT", "50")
    monkeypatch.setenv("TRACKER_CONCURRENCY", "5")
    monkeypatch.setenv("TRACKER_CACHE_DB_PATH", str(tmp_path / "c.db"))
    settings = load_settings()
    assert settings.rpc_url == "https://rpc.example.test"
    assert settings.tx_limit == 50
    assert settings.concurrency == 5
    assert settings.cache_db_path == Path(tmp_path / "c.db")


@pytest.mark.parametrize(
    "name,value",
    [
        ("TRACKER_TX_LIMIT", "7"),
        ("TRACKER_TX_LIMIT", "many"),
        ("TRACKER_CONCURRENCY", "4"),
        ("TRACKER_REQUEST_TIMEOUT_SEC", "0"),
        ("API_PORT", "http"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()


def test_helius_fallback(monkeypatch):
    monkeypatch.setenv("HELIUS_API_KEY", "secret")
    monkeypatch.setenv("SOLANA_NETWORK", "devnet")
    url = get_rpc_url()
    assert url == "https://devnet.helius-rpc.com/?api-key=secret"
    assert mask_rpc_url(url) == "https://devnet.helius-rpc.com/?api-key=***"

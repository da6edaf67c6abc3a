"""
Application settings and environment configuration.

Typed settings (default RPC URL, transaction limit, concurrency, timeouts,
cache location, API bind address) for the orchestrator, API server and CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from sol_wallet_tracker.config.env import get_rpc_url, load_tracker_env
from sol_wallet_tracker.core.exceptions import ConfigError

ALLOWED_TX_LIMITS = (20, 50)
ALLOWED_CONCURRENCY = (3, 5)
CACHE_TTL_SECONDS = 300
DEFAULT_TX_LIMIT = 20
DEFAULT_CONCURRENCY = 3
DEFAULT_REQUEST_TIMEOUT_SEC = 30.0


@dataclass(frozen=True)
class TrackerSettings:
    """Resolved tracker configuration."""

    rpc_url: str
    tx_limit: int = DEFAULT_TX_LIMIT
    concurrency: int = DEFAULT_CONCURRENCY
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC
    cache_db_path: Path | None = None
    """SQLite file for the wallet cache; None keeps the cache in memory."""
    api_host: str = "127.0.0.1"
    api_port: int = 8000


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def load_settings() -> TrackerSettings:
    """Build settings from the environment; raise ConfigError on invalid values."""
    load_tracker_env()
    tx_limit = _env_int("TRACKER_TX_LIMIT", DEFAULT_TX_LIMIT)
    if tx_limit not in ALLOWED_TX_LIMITS:
        raise ConfigError(f"TRACKER_TX_LIMIT must be one of {ALLOWED_TX_LIMITS}")
    concurrency = _env_int("TRACKER_CONCURRENCY", DEFAULT_CONCURRENCY)
    if concurrency not in ALLOWED_CONCURRENCY:
        raise ConfigError(f"TRACKER_CONCURRENCY must be one of {ALLOWED_CONCURRENCY}")
    timeout = _env_float("TRACKER_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC)
    if timeout <= 0:
        raise ConfigError("TRACKER_REQUEST_TIMEOUT_SEC must be positive")
    cache_path_raw = (os.getenv("TRACKER_CACHE_DB_PATH") or "").strip()
    return TrackerSettings(
        rpc_url=get_rpc_url(),
        tx_limit=tx_limit,
        concurrency=concurrency,
        request_timeout_sec=timeout,
        cache_db_path=Path(cache_path_raw) if cache_path_raw else None,
        api_host=(os.getenv("API_HOST") or "127.0.0.1").strip(),
        api_port=_env_int("API_PORT", 8000),
    )


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    """Return the process-wide settings (loaded once)."""
    return load_settings()

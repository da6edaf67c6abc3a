"""
Configuration management for the wallet tracker.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for service configuration.
"""

from sol_wallet_tracker.config.env import (  # noqa: F401
    COMMITMENT,
    LAMPORTS_PER_SOL,
    RPC_ENDPOINT_PRESETS,
    TOKEN_PROGRAM_ID,
    get_rpc_url,
    load_tracker_env,
)
from sol_wallet_tracker.config.settings import (  # noqa: F401
    ALLOWED_CONCURRENCY,
    ALLOWED_TX_LIMITS,
    CACHE_TTL_SECONDS,
    TrackerSettings,
    get_settings,
    load_settings,
)
from sol_wallet_tracker.core.exceptions import ConfigError  # noqa: F401

__all__ = [
    "ALLOWED_CONCURRENCY",
    "ALLOWED_TX_LIMITS",
    "CACHE_TTL_SECONDS",
    "COMMITMENT",
    "ConfigError",
    "LAMPORTS_PER_SOL",
    "RPC_ENDPOINT_PRESETS",
    "TOKEN_PROGRAM_ID",
    "TrackerSettings",
    "get_rpc_url",
    "get_settings",
    "load_settings",
    "load_tracker_env",
]

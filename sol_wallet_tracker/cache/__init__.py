"""
Cache package: expiring local storage of wallet lookups.
"""

from sol_wallet_tracker.cache.store import (
    CacheStoreError,
    KeyValueStore,
    MemoryStore,
    SQLiteStore,
    get_store,
)
from sol_wallet_tracker.cache.wallet_cache import (
    DecodeResult,
    WalletCache,
    WalletCacheEntry,
    cache_key,
    decode_entry,
    encode_entry,
)

__all__ = [
    "CacheStoreError",
    "DecodeResult",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "WalletCache",
    "WalletCacheEntry",
    "cache_key",
    "decode_entry",
    "encode_entry",
    "get_store",
]

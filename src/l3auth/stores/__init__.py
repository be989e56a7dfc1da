"""TTL key-value stores backing nonces and sessions."""

from .base import KVStore
from .factory import Connected, Fallback, StoreInit, init_store
from .memory import MemoryStore
from .redis_store import RedisStore

__all__ = [
    "Connected",
    "Fallback",
    "KVStore",
    "MemoryStore",
    "RedisStore",
    "StoreInit",
    "init_store",
]

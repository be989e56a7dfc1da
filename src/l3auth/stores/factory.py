"""Startup selection between the Redis and in-process stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from redis.exceptions import RedisError

from l3auth.core.settings import Settings, settings
from l3auth.stores.base import KVStore
from l3auth.stores.memory import MemoryStore
from l3auth.stores.redis_store import RedisStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Connected:
    """Redis was configured and answered the startup ping."""

    store: KVStore


@dataclass(frozen=True)
class Fallback:
    """The in-process store is in use; `reason` says why."""

    store: MemoryStore
    reason: str


StoreInit = Connected | Fallback


async def init_store(prefix: str, config: Settings = settings) -> StoreInit:
    """Construct the store for one key namespace.

    Redis is preferred when configured. A failed connection at startup falls
    back to memory with a single warning; nothing is retried later.
    """
    if not prefix:
        raise ValueError("KVStore prefix is required")

    def _memory() -> MemoryStore:
        return MemoryStore(sweep_interval_seconds=config.memory_store_sweep_seconds)

    if not config.redis_enabled:
        logger.info("Redis not configured; using in-memory store for %s", prefix)
        return Fallback(_memory(), "redis not configured")

    redis_store = RedisStore.from_url(
        config.redis_url or "",
        prefix,
        timeout_seconds=config.redis_timeout_seconds,
    )
    try:
        await redis_store.ping()
    except (RedisError, OSError) as err:
        await redis_store.close()
        logger.warning(
            "Failed to connect to Redis. Falling back to in-memory store for %s: %s",
            prefix,
            err,
        )
        return Fallback(_memory(), f"redis unreachable: {err}")

    logger.info("Connected to Redis store for %s", prefix)
    return Connected(redis_store)

"""Redis-backed TTL store.

Expiry is delegated to Redis (`SET ... EX`), so no local sweep is needed.
Replies are read as bytes and decoded here, so undecodable payloads read
as absent instead of failing inside the client.
All keys live under a prefix so nonce and session data cannot collide.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from l3auth.core.errors import StoreUnavailableError
from l3auth.stores.base import KVStore, StoredValue, clamp_ttl

logger = logging.getLogger(__name__)


def _encode(value: StoredValue) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def _decode(raw: Any) -> StoredValue | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


@contextmanager
def _unavailable_on_error(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as err:
        logger.error("Redis %s failed: %s", operation, err)
        raise StoreUnavailableError() from err


class RedisStore(KVStore):
    """Store backed by a `redis.asyncio` client."""

    def __init__(self, client: redis.Redis, prefix: str) -> None:
        if not prefix:
            raise ValueError("RedisStore prefix is required")
        self._client = client
        self.prefix = prefix[:-1] if prefix.endswith(":") else prefix

    @classmethod
    def from_url(cls, url: str, prefix: str, *, timeout_seconds: float = 2.0) -> RedisStore:
        """Build a store whose every call is bounded by `timeout_seconds`."""
        client = redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client, prefix)

    def key(self, token: str) -> str:
        return f"{self.prefix}:{token}"

    async def ping(self) -> None:
        """Raise if the server cannot be reached."""
        await self._client.ping()

    async def set(self, key: str, value: StoredValue, ttl_seconds: float) -> None:
        with _unavailable_on_error("set"):
            await self._client.set(self.key(key), _encode(value), ex=clamp_ttl(ttl_seconds))

    async def get(self, key: str) -> StoredValue | None:
        with _unavailable_on_error("get"):
            raw = await self._client.get(self.key(key))
        return _decode(raw)

    async def delete(self, key: str) -> None:
        with _unavailable_on_error("delete"):
            await self._client.delete(self.key(key))

    async def compare_and_set(
        self,
        key: str,
        expected: StoredValue,
        value: StoredValue,
        ttl_seconds: float,
    ) -> bool:
        full_key = self.key(key)
        with _unavailable_on_error("compare_and_set"):
            async with self._client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(full_key)
                    current = _decode(await pipe.get(full_key))
                    if current is None or current != expected:
                        return False
                    pipe.multi()
                    pipe.set(full_key, _encode(value), ex=clamp_ttl(ttl_seconds))
                    await pipe.execute()
                except WatchError:
                    return False
        return True

    async def close(self) -> None:
        await self._client.aclose()

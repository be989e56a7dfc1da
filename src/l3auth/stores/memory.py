"""In-process TTL store used when Redis is not configured or unreachable."""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from l3auth.stores.base import KVStore, StoredValue, clamp_ttl


@dataclass
class _Entry:
    value: StoredValue
    expires_at: float


class MemoryStore(KVStore):
    """Dictionary-backed store with lazy expiry.

    Expired entries are dropped when read. `set` also sweeps the whole map at
    most once per `sweep_interval_seconds` so abandoned keys do not pile up.
    """

    def __init__(
        self,
        *,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._records: dict[str, _Entry] = {}
        self._lock = Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _live_entry(self, key: str, now: float) -> _Entry | None:
        # Caller must hold the lock.
        entry = self._records.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._records[key]
            return None
        return entry

    def _sweep_locked(self, now: float) -> int:
        dead = [key for key, entry in self._records.items() if entry.expires_at <= now]
        for key in dead:
            del self._records[key]
        self._last_sweep = now
        return len(dead)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    async def set(self, key: str, value: StoredValue, ttl_seconds: float) -> None:
        now = self._clock()
        entry = _Entry(copy.deepcopy(value), now + clamp_ttl(ttl_seconds))
        with self._lock:
            self._records[key] = entry
            if self._sweep_interval > 0 and now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)

    async def get(self, key: str) -> StoredValue | None:
        with self._lock:
            entry = self._live_entry(key, self._clock())
            if entry is None:
                return None
            return copy.deepcopy(entry.value)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    async def compare_and_set(
        self,
        key: str,
        expected: StoredValue,
        value: StoredValue,
        ttl_seconds: float,
    ) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._live_entry(key, now)
            if entry is None or entry.value != expected:
                return False
            self._records[key] = _Entry(copy.deepcopy(value), now + clamp_ttl(ttl_seconds))
            return True

"""Key-value store contract shared by the nonce and session managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

StoredValue = dict[str, Any]


def clamp_ttl(ttl_seconds: float) -> int:
    """Return a whole-second TTL of at least one second."""
    return max(1, int(ttl_seconds))


class KVStore(ABC):
    """Asynchronous key-value store with per-entry time-to-live.

    Values are JSON-compatible dicts. Implementations must treat unreadable
    payloads as absent rather than raising.
    """

    @abstractmethod
    async def set(self, key: str, value: StoredValue, ttl_seconds: float) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    async def get(self, key: str) -> StoredValue | None:
        """Return the live value for `key` or None."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`. Deleting a missing key is not an error."""

    @abstractmethod
    async def compare_and_set(
        self,
        key: str,
        expected: StoredValue,
        value: StoredValue,
        ttl_seconds: float,
    ) -> bool:
        """Atomically replace the value only if it still equals `expected`.

        Returns:
            True if the write happened; False if the key is missing, expired,
            or was changed by someone else.
        """

    async def close(self) -> None:
        """Release any underlying connections."""
        return None

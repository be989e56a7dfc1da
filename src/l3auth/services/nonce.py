"""Single-use nonce issuance and consumption."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from l3auth.core.errors import (
    InvalidNonceMetadataError,
    NonceAlreadyUsedError,
    NonceExpiredError,
    NonceNotFoundError,
)
from l3auth.schemas.auth import NonceIssued, NonceRecord, NonceStatus
from l3auth.services.timeutil import parse_iso, to_iso, utc_now
from l3auth.stores.base import KVStore


class NonceManager:
    """Issue nonces and consume each of them at most once.

    Args:
        store: Store dedicated to nonce records.
        ttl_seconds: Store TTL bounding how long an unused nonce may be claimed.
        max_age_seconds: Freshness bound checked against `issuedAt` on
            consumption, independent of the store TTL.
        clock: Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        store: KVStore,
        *,
        ttl_seconds: int,
        max_age_seconds: int,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    @staticmethod
    def generate_nonce() -> str:
        return uuid.uuid4().hex

    async def create(self) -> NonceIssued:
        """Store a fresh unused nonce and return it with its issue time."""
        nonce = self.generate_nonce()
        issued_at = to_iso(self._clock())
        record = NonceRecord(issued_at=issued_at, used=0)
        await self._store.set(nonce, record.to_json_dict(), self.ttl_seconds)
        return NonceIssued(nonce=nonce, issued_at=issued_at)

    async def consume(self, nonce: str) -> NonceRecord:
        """Mark `nonce` as used and return the record as it was before.

        Raises:
            NonceNotFoundError: Never issued, expired, or deleted.
            InvalidNonceMetadataError: Stored `issuedAt` missing or unparsable.
            NonceExpiredError: Older than `max_age_seconds`.
            NonceAlreadyUsedError: Already consumed, including by a concurrent
                caller that won the compare-and-set.
        """
        raw = await self._store.get(nonce)
        if raw is None:
            raise NonceNotFoundError()

        issued_at = raw.get("issuedAt")
        if not isinstance(issued_at, str) or not issued_at:
            await self._store.delete(nonce)
            raise InvalidNonceMetadataError()
        try:
            issued_moment = parse_iso(issued_at)
        except (ValueError, OverflowError):
            await self._store.delete(nonce)
            raise InvalidNonceMetadataError() from None

        age = (self._clock() - issued_moment).total_seconds()
        if age > self.max_age_seconds:
            await self._store.delete(nonce)
            raise NonceExpiredError()

        if raw.get("used") == 1:
            raise NonceAlreadyUsedError()

        record = NonceRecord(issued_at=issued_at, used=0)
        updated = {**raw, "used": 1}
        if not await self._store.compare_and_set(nonce, raw, updated, self.ttl_seconds):
            raise NonceAlreadyUsedError()
        return record

    async def verify(self, nonce: str) -> NonceStatus:
        """Report whether `nonce` exists and has been used, without changing it."""
        raw = await self._store.get(nonce)
        if raw is None:
            return NonceStatus(exists=False, used=0)
        return NonceStatus(exists=True, used=1 if raw.get("used") == 1 else 0)

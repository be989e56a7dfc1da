"""Opaque session tokens stored in a TTL store."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import Protocol
from urllib.parse import unquote

from pydantic import ValidationError

from l3auth.core.errors import InvalidSessionError, MissingSessionError
from l3auth.schemas.auth import AuthIdentity, L3Session, SessionContext
from l3auth.services.timeutil import to_iso, utc_now
from l3auth.stores.base import KVStore

logger = logging.getLogger(__name__)


class HasHeaders(Protocol):
    headers: Mapping[str, str]


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Look up a header by name, ignoring case."""
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class SessionManager:
    """Create, resolve and revoke sessions."""

    def __init__(
        self,
        store: KVStore,
        *,
        ttl_seconds: int,
        cookie_name: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.cookie_name = cookie_name
        self._clock = clock

    @staticmethod
    def generate_token() -> str:
        return uuid.uuid4().hex

    async def create_session(self, identity: AuthIdentity) -> SessionContext:
        now = self._clock()
        session = L3Session(
            identity=identity,
            issued_at=to_iso(now),
            expires_at=to_iso(now + timedelta(seconds=self.ttl_seconds)),
        )
        token = self.generate_token()
        await self._store.set(token, session.to_json_dict(), self.ttl_seconds)
        return SessionContext(token=token, session=session)

    async def get_session(self, token: str) -> L3Session | None:
        raw = await self._store.get(token)
        if raw is None:
            return None
        try:
            return L3Session.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed session payload")
            return None

    async def invalidate_session(self, token: str) -> None:
        await self._store.delete(token)

    async def verify_token(self, token: str | None) -> SessionContext:
        """Resolve `token` into a session context.

        Raises:
            MissingSessionError: If no token was supplied.
            InvalidSessionError: If the store has no live session for it.
        """
        if not token:
            raise MissingSessionError()
        session = await self.get_session(token)
        if session is None:
            raise InvalidSessionError()
        return SessionContext(token=token, session=session)

    async def require_session_from_request(self, request: HasHeaders) -> SessionContext:
        """Resolve the session from a bearer header, falling back to the cookie."""
        token = self.read_authorization_header(_header(request.headers, "authorization"))
        if token is None:
            token = self.read_session_cookie(_header(request.headers, "cookie"))
        return await self.verify_token(token)

    @staticmethod
    def read_authorization_header(auth_header: str | None) -> str | None:
        if not auth_header:
            return None
        parts = auth_header.split()
        if len(parts) < 2 or parts[0].lower() != "bearer":
            return None
        token = " ".join(parts[1:]).strip()
        return token or None

    def read_session_cookie(self, cookie_header: str | None) -> str | None:
        """Extract the session cookie value.

        Names compare case-insensitively; surrounding quotes are stripped and
        percent-encoding is decoded.
        """
        if not cookie_header:
            return None
        wanted = self.cookie_name.lower()
        for cookie in cookie_header.split(";"):
            name, sep, raw_value = cookie.partition("=")
            if not sep or name.strip().lower() != wanted:
                continue
            value = raw_value.strip()
            if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            if not value:
                continue
            return unquote(value)
        return None

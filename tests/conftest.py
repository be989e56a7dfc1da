# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.pop("REDIS_URL", None)

from l3auth.main import app as fastapi_app
from l3auth.main import build_auth_service
from l3auth.schemas.auth import AuthIdentity
from l3auth.services.login import AuthService
from l3auth.services.nonce import NonceManager
from l3auth.services.session import SessionManager
from l3auth.stores.memory import MemoryStore

TEST_DOMAIN = "localhost"
TEST_PRIVATE_KEY = "0x" + "11" * 32


class FrozenClock:
    """Settable UTC clock for nonce and session managers."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def sign_text(account: LocalAccount, message: str) -> str:
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


def identity_for(account: LocalAccount, chain_id: str = "1") -> dict[str, str]:
    address = account.address.lower()
    return {
        "account": f"eip155:{chain_id}:{address}",
        "namespace": "eip155",
        "chainId": chain_id,
        "address": address,
    }


@pytest.fixture(scope="session")
def test_account() -> LocalAccount:
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture()
def other_account() -> LocalAccount:
    return Account.create()


@pytest.fixture()
def identity_payload(test_account: LocalAccount) -> dict[str, str]:
    return identity_for(test_account)


@pytest.fixture()
def identity(identity_payload: dict[str, str]) -> AuthIdentity:
    return AuthIdentity.model_validate(identity_payload)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def nonce_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def session_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def nonce_manager(nonce_store: MemoryStore, clock: FrozenClock) -> NonceManager:
    return NonceManager(nonce_store, ttl_seconds=600, max_age_seconds=300, clock=clock)


@pytest.fixture()
def session_manager(session_store: MemoryStore, clock: FrozenClock) -> SessionManager:
    return SessionManager(session_store, ttl_seconds=120, cookie_name="l3-session", clock=clock)


@pytest.fixture()
def auth_service(nonce_store: MemoryStore, session_store: MemoryStore) -> AuthService:
    return build_auth_service(nonce_store, session_store)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url=f"http://{TEST_DOMAIN}") as test_client:
        yield test_client


@pytest.fixture()
def login_payload(auth_service: AuthService, test_account: LocalAccount, identity_payload):
    """Return a coroutine factory producing a signed login body for `auth_service`."""

    async def _build(domain: str = TEST_DOMAIN) -> dict[str, Any]:
        issued = await auth_service.issue_nonce()
        identity = AuthIdentity.model_validate(identity_payload)
        message = auth_service.verifier.build_message(
            identity, issued.nonce, issued.issued_at, domain
        )
        return {
            "identity": identity_payload,
            "message": message,
            "signature": sign_text(test_account, message),
            "nonce": issued.nonce,
            "issuedAt": issued.issued_at,
        }

    return _build

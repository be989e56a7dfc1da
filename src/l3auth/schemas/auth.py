"""Authentication schemas.

Field names are exposed in camelCase so the JSON written to the store and
returned to clients keeps the wire layout (`chainId`, `issuedAt`, ...).
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Return a JSON-compatible dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


class AuthIdentity(CamelModel):
    """Chain account identity presented at login."""

    account: str = Field(..., description="CAIP-10 account, e.g. eip155:1:0xabc...")
    namespace: str = Field(..., description="CAIP-2 namespace, e.g. eip155")
    chain_id: str = Field(..., description="Chain reference within the namespace, e.g. 1")
    address: str = Field(..., description="Wallet address or public key")


class NonceRecord(CamelModel):
    """Stored state of an issued nonce."""

    issued_at: str
    used: Literal[0, 1] = 0


class NonceIssued(CamelModel):
    """Nonce handed to a client before it signs the login message."""

    nonce: str
    issued_at: str


class NonceStatus(CamelModel):
    """Non-mutating view of a nonce for diagnostics."""

    exists: bool
    used: Literal[0, 1] = 0


class L3Session(CamelModel):
    """Server-side session created after a successful login."""

    identity: AuthIdentity
    issued_at: str
    expires_at: str


class SessionContext(CamelModel):
    """Session resolved for a single request."""

    token: str
    session: L3Session


class LoginRequest(CamelModel):
    """Signed login submission."""

    identity: AuthIdentity
    message: str = Field(..., description="Canonical sign-in message the wallet signed")
    signature: str = Field(..., description="Hex-encoded wallet signature")
    nonce: str = Field(..., description="Nonce returned by the nonce endpoint")
    issued_at: str = Field(..., description="issuedAt returned alongside the nonce")


class LoginResponse(L3Session):
    """Session returned to the client together with its opaque token."""

    token: str


class LogoutResponse(CamelModel):
    """Result of a logout call."""

    success: bool = True

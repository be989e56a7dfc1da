"""Exception taxonomy for the authentication flow.

Every error carries the HTTP status it maps to and a stable numeric code so
the boundary layer can render it without knowing the individual types.
"""

from __future__ import annotations

from enum import Enum


class AuthError(Exception):
    """Base class for all errors raised by the authentication core."""

    status_code: int = 400
    code: int = 40000
    detail: str = "Authentication error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class IdentityErrorKind(Enum):
    """One entry per identity validation rule, paired with its error code."""

    EMPTY_FIELD = (40001, "identity fields must be non-empty")
    INVALID_NAMESPACE = (40002, "identity.namespace is not CAIP-2 compliant")
    INVALID_CHAIN_ID = (40003, "identity.chainId is not CAIP-2 compliant")
    INVALID_ACCOUNT = (40004, "identity.account must be a CAIP-10 identifier")
    NAMESPACE_MISMATCH = (40005, "identity.account namespace mismatch")
    CHAIN_ID_MISMATCH = (40006, "identity.account chainId mismatch")
    ADDRESS_MISMATCH = (40007, "identity.account address mismatch")
    INVALID_ADDRESS = (40008, "identity.address must be a valid Ethereum address")
    MISSING_ADDRESS = (40009, "identity.address must be provided")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class IdentityValidationError(AuthError):
    """Raised when a submitted identity violates a CAIP shape rule."""

    def __init__(self, kind: IdentityErrorKind) -> None:
        self.kind = kind
        self.code = kind.code
        super().__init__(kind.message)


class NonceError(AuthError):
    """Base class for nonce lifecycle failures."""


class NonceNotFoundError(NonceError):
    code = 40020
    detail = "Invalid or expired nonce"


class NonceAlreadyUsedError(NonceError):
    code = 40021
    detail = "Nonce already used"


class InvalidNonceMetadataError(NonceError):
    code = 40022
    detail = "Invalid nonce metadata"


class NonceExpiredError(NonceError):
    code = 40023
    detail = "Nonce expired"


class IssuedAtMismatchError(AuthError):
    code = 40011
    detail = "Login issuedAt mismatch"


class MessageMismatchError(AuthError):
    code = 40012
    detail = "Login message mismatch"


class SignatureVerificationError(AuthError):
    status_code = 401
    code = 40101
    detail = "Signature verification failed"


class MissingSessionError(AuthError):
    status_code = 401
    code = 40110
    detail = "Missing L3 session"


class InvalidSessionError(AuthError):
    status_code = 401
    code = 40111
    detail = "Invalid or expired L3 session"


class StoreUnavailableError(AuthError):
    """Raised when the backing store cannot be reached at request time."""

    status_code = 503
    code = 50301
    detail = "Session store unavailable"

"""Signed-message login protocol.

Stages run in order and each one can end the attempt:

1. normalize the identity (raises `IdentityValidationError`);
2. consume the nonce;
3. require the submitted `issuedAt` to equal the stored one;
4. rebuild the canonical message and require a byte-for-byte match;
5. verify the wallet signature over the canonical message.

Stages 2-5 report through a tagged result so the caller decides what to log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from l3auth.core.errors import (
    AuthError,
    IdentityValidationError,
    InvalidNonceMetadataError,
    IssuedAtMismatchError,
    MessageMismatchError,
    NonceAlreadyUsedError,
    NonceError,
    NonceExpiredError,
    NonceNotFoundError,
    SignatureVerificationError,
)
from l3auth.schemas.auth import (
    AuthIdentity,
    LoginRequest,
    LogoutResponse,
    NonceIssued,
    NonceRecord,
    SessionContext,
)
from l3auth.services.audit import log_auth_event
from l3auth.services.identity import normalize_identity
from l3auth.services.nonce import NonceManager
from l3auth.services.session import SessionManager
from l3auth.services.signature import SignatureVerifier

logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    NONCE_NOT_FOUND = "nonce_not_found"
    NONCE_ALREADY_USED = "nonce_already_used"
    NONCE_EXPIRED = "nonce_expired"
    INVALID_NONCE_METADATA = "invalid_nonce_metadata"
    ISSUED_AT_MISMATCH = "issued_at_mismatch"
    MESSAGE_MISMATCH = "message_mismatch"
    SIGNATURE_VERIFICATION_FAILED = "signature_verification_failed"


_NONCE_FAILURES: dict[type[NonceError], FailureReason] = {
    NonceNotFoundError: FailureReason.NONCE_NOT_FOUND,
    NonceAlreadyUsedError: FailureReason.NONCE_ALREADY_USED,
    NonceExpiredError: FailureReason.NONCE_EXPIRED,
    InvalidNonceMetadataError: FailureReason.INVALID_NONCE_METADATA,
}


@dataclass(frozen=True)
class VerificationSuccess:
    nonce_record: NonceRecord
    success: Literal[True] = True


@dataclass(frozen=True)
class VerificationFailure:
    reason: FailureReason
    error: AuthError
    success: Literal[False] = False


VerificationResult = VerificationSuccess | VerificationFailure


def build_login_message(
    identity: AuthIdentity,
    nonce: str,
    issued_at: str,
    domain: str,
    version: str,
) -> str:
    """Return the canonical sign-in text for one login attempt."""
    chain_reference = f"{identity.namespace}:{identity.chain_id}"
    return "\n".join(
        [
            f"{domain} wants you to sign in with your account: {identity.account}",
            f"domain: {domain}",
            f"Version: {version}",
            f"Chain ID: {chain_reference}",
            f"Nonce: {nonce}",
            f"Issued At: {issued_at}",
        ]
    )


class LoginVerifier:
    """Run the nonce, message and signature stages for a normalized identity."""

    def __init__(
        self,
        nonces: NonceManager,
        signatures: SignatureVerifier,
        *,
        message_version: str,
    ) -> None:
        self._nonces = nonces
        self._signatures = signatures
        self.message_version = message_version

    def build_message(self, identity: AuthIdentity, nonce: str, issued_at: str, domain: str) -> str:
        return build_login_message(identity, nonce, issued_at, domain, self.message_version)

    async def verify(
        self,
        *,
        identity: AuthIdentity,
        message: str,
        signature: str,
        nonce: str,
        issued_at: str,
        domain: str,
    ) -> VerificationResult:
        try:
            record = await self._nonces.consume(nonce)
        except NonceError as err:
            return VerificationFailure(_NONCE_FAILURES[type(err)], err)

        # Binds the signed text to the exact issuance instant of this nonce.
        if issued_at != record.issued_at:
            return VerificationFailure(FailureReason.ISSUED_AT_MISMATCH, IssuedAtMismatchError())

        expected = self.build_message(identity, nonce, record.issued_at, domain)
        if message != expected:
            return VerificationFailure(FailureReason.MESSAGE_MISMATCH, MessageMismatchError())

        if not self._signatures.verify(identity, expected, signature):
            return VerificationFailure(
                FailureReason.SIGNATURE_VERIFICATION_FAILED,
                SignatureVerificationError(),
            )

        return VerificationSuccess(record)


class AuthService:
    """Entry points used by the HTTP layer: nonce, login, logout."""

    def __init__(
        self,
        nonces: NonceManager,
        sessions: SessionManager,
        verifier: LoginVerifier,
    ) -> None:
        self.nonces = nonces
        self.sessions = sessions
        self.verifier = verifier

    async def issue_nonce(self) -> NonceIssued:
        return await self.nonces.create()

    async def login(self, payload: LoginRequest, domain: str) -> SessionContext:
        """Authenticate a signed login request and open a session.

        Raises:
            IdentityValidationError: If the identity is malformed.
            AuthError: The error of the first failing stage.
        """
        try:
            identity = normalize_identity(payload.identity)
        except IdentityValidationError as err:
            log_auth_event(
                logging.WARNING, "login_failure", payload.identity.account, err.kind.name.lower()
            )
            raise
        result = await self.verifier.verify(
            identity=identity,
            message=payload.message,
            signature=payload.signature,
            nonce=payload.nonce,
            issued_at=payload.issued_at,
            domain=domain,
        )

        if isinstance(result, VerificationFailure):
            if result.reason is FailureReason.INVALID_NONCE_METADATA:
                logger.error("Nonce record with invalid metadata was discarded")
            else:
                log_auth_event(
                    logging.WARNING, "login_failure", identity.account, result.reason.value
                )
            raise result.error

        context = await self.sessions.create_session(identity)
        log_auth_event(logging.INFO, "login_success", identity.account)
        return context

    async def logout(self, context: SessionContext) -> LogoutResponse:
        await self.sessions.invalidate_session(context.token)
        log_auth_event(logging.INFO, "logout", context.session.identity.account)
        return LogoutResponse(success=True)

"""CAIP-2 / CAIP-10 identity validation and normalization."""

from __future__ import annotations

import re

from l3auth.core.errors import IdentityErrorKind, IdentityValidationError
from l3auth.schemas.auth import AuthIdentity

EIP155_NAMESPACE = "eip155"

EIP155_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
NAMESPACE_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
CHAIN_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def is_eip155_address(value: str) -> bool:
    return bool(EIP155_ADDRESS_RE.fullmatch(value))


def normalize_address(namespace: str, address: str) -> str:
    """Return the canonical form of `address` for `namespace`."""
    if namespace == EIP155_NAMESPACE:
        if not is_eip155_address(address):
            raise IdentityValidationError(IdentityErrorKind.INVALID_ADDRESS)
        return address.lower()
    if not address:
        raise IdentityValidationError(IdentityErrorKind.MISSING_ADDRESS)
    return address


def normalize_identity(identity: AuthIdentity) -> AuthIdentity:
    """Validate `identity` and rebuild it from its normalized parts.

    Raises:
        IdentityValidationError: With the kind of the first rule violated.
    """
    account = identity.account.strip()
    namespace = identity.namespace.strip()
    chain_id = identity.chain_id.strip()
    address = identity.address.strip()

    if not (account and namespace and chain_id and address):
        raise IdentityValidationError(IdentityErrorKind.EMPTY_FIELD)
    if not NAMESPACE_RE.fullmatch(namespace):
        raise IdentityValidationError(IdentityErrorKind.INVALID_NAMESPACE)
    if not CHAIN_ID_RE.fullmatch(chain_id):
        raise IdentityValidationError(IdentityErrorKind.INVALID_CHAIN_ID)

    parts = account.split(":")
    if len(parts) != 3:
        raise IdentityValidationError(IdentityErrorKind.INVALID_ACCOUNT)
    account_namespace, account_chain_id, account_address = (part.strip() for part in parts)

    if account_namespace != namespace:
        raise IdentityValidationError(IdentityErrorKind.NAMESPACE_MISMATCH)
    if account_chain_id != chain_id:
        raise IdentityValidationError(IdentityErrorKind.CHAIN_ID_MISMATCH)

    normalized_address = normalize_address(namespace, address)
    if normalize_address(namespace, account_address) != normalized_address:
        raise IdentityValidationError(IdentityErrorKind.ADDRESS_MISMATCH)

    return AuthIdentity(
        account=f"{namespace}:{chain_id}:{normalized_address}",
        namespace=namespace,
        chain_id=chain_id,
        address=normalized_address,
    )

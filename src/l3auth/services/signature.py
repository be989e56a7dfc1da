"""Wallet signature verification keyed by CAIP-2 namespace."""

from __future__ import annotations

from collections.abc import Callable

from eth_account import Account
from eth_account.messages import encode_defunct

from l3auth.schemas.auth import AuthIdentity
from l3auth.services.identity import EIP155_NAMESPACE, is_eip155_address

NamespaceVerifier = Callable[[str, str, str], bool]


def verify_eip155_signature(address: str, message: str, signature: str) -> bool:
    """Verify an EIP-191 personal_sign signature.

    Args:
        address: 0x-prefixed 20-byte hex address, any casing.
        message: Exact text that was signed.
        signature: Hex-encoded 65-byte signature.

    Returns:
        True if the recovered signer equals `address`; False otherwise.
    """
    if not is_eip155_address(address):
        return False
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception:
        return False
    return recovered.lower() == address.lower()


class SignatureVerifier:
    """Dispatch signature checks to the verifier registered for a namespace.

    Namespaces without a verifier fail closed.
    """

    def __init__(self) -> None:
        self._verifiers: dict[str, NamespaceVerifier] = {
            EIP155_NAMESPACE: verify_eip155_signature,
        }

    def register(self, namespace: str, verifier: NamespaceVerifier) -> None:
        self._verifiers[namespace] = verifier

    def supports(self, namespace: str) -> bool:
        return namespace in self._verifiers

    def verify(self, identity: AuthIdentity, message: str, signature: str) -> bool:
        verifier = self._verifiers.get(identity.namespace)
        if verifier is None:
            return False
        try:
            return bool(verifier(identity.address, message, signature))
        except Exception:
            return False

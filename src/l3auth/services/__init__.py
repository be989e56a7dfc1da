"""Authentication services."""

from .identity import normalize_identity
from .login import AuthService, LoginVerifier, build_login_message
from .nonce import NonceManager
from .session import SessionManager
from .signature import SignatureVerifier

__all__ = [
    "AuthService",
    "LoginVerifier",
    "NonceManager",
    "SessionManager",
    "SignatureVerifier",
    "build_login_message",
    "normalize_identity",
]

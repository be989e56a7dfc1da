"""Pydantic schemas for request validation and stored records."""

from .auth import (
    AuthIdentity,
    L3Session,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    NonceIssued,
    NonceRecord,
    NonceStatus,
    SessionContext,
)

__all__ = [
    "AuthIdentity",
    "L3Session",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "NonceIssued",
    "NonceRecord",
    "NonceStatus",
    "SessionContext",
]

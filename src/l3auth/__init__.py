"""Wallet signature authentication with single-use nonces and TTL sessions."""

__version__ = "0.1.0"

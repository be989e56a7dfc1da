"""Application settings and configuration.

This module defines all configuration options for the l3auth service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="L3 Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Redis configuration; when unset the in-process store is used
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    redis_timeout_seconds: float = Field(default=2.0, alias="REDIS_TIMEOUT_SECONDS")
    nonce_store_prefix: str = Field(default="l3:nonce", alias="NONCE_STORE_PREFIX")
    session_store_prefix: str = Field(default="l3:session", alias="SESSION_STORE_PREFIX")
    memory_store_sweep_seconds: float = Field(default=60.0, alias="MEMORY_STORE_SWEEP_SECONDS")

    # Nonce lifecycle
    nonce_ttl_seconds: int = Field(default=600, alias="NONCE_TTL_SECONDS")
    nonce_max_age_seconds: int = Field(default=300, alias="NONCE_MAX_AGE_SECONDS")

    # Sessions
    session_ttl_seconds: int = Field(default=60 * 60 * 24, alias="SESSION_TTL_SECONDS")
    session_cookie_name: str = Field(default="l3-session", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")

    # Sign-in message
    auth_message_version: str = Field(default="1", alias="AUTH_MESSAGE_VERSION")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def redis_enabled(self) -> bool:
        """Return True when an external Redis store is configured."""
        return bool(self.redis_url and self.redis_url.strip())


settings = Settings()

# src/l3auth/main.py
"""Main entry point for the l3auth service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from l3auth.api.v1 import auth_router, users_router
from l3auth.core.errors import AuthError
from l3auth.core.settings import Settings, settings
from l3auth.services.login import AuthService, LoginVerifier
from l3auth.services.nonce import NonceManager
from l3auth.services.session import SessionManager
from l3auth.services.signature import SignatureVerifier
from l3auth.stores import KVStore, init_store


app = FastAPI(
    title="L3 Auth API",
    description="Wallet signature login with single-use nonces and server-side sessions",
    version=settings.app_version,
)

app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


def build_auth_service(
    nonce_store: KVStore,
    session_store: KVStore,
    config: Settings = settings,
) -> AuthService:
    """Wire the managers around explicitly constructed stores."""
    nonces = NonceManager(
        nonce_store,
        ttl_seconds=config.nonce_ttl_seconds,
        max_age_seconds=config.nonce_max_age_seconds,
    )
    sessions = SessionManager(
        session_store,
        ttl_seconds=config.session_ttl_seconds,
        cookie_name=config.session_cookie_name,
    )
    verifier = LoginVerifier(
        nonces,
        SignatureVerifier(),
        message_version=config.auth_message_version,
    )
    return AuthService(nonces, sessions, verifier)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    nonce_init = await init_store(settings.nonce_store_prefix)
    session_init = await init_store(settings.session_store_prefix)
    app.state.stores = (nonce_init.store, session_init.store)
    app.state.auth_service = build_auth_service(nonce_init.store, session_init.store)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    for store in getattr(app.state, "stores", ()):
        await store.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Wallet signature login service",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("l3auth.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

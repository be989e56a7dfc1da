# src/l3auth/api/v1/endpoints/auth.py
"""Authentication endpoints: nonce issuance, login and logout."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from l3auth.api.v1.dependencies import AuthServiceDep, CurrentSessionDep
from l3auth.core.settings import settings
from l3auth.schemas.auth import LoginRequest, LoginResponse, LogoutResponse, NonceIssued

router = APIRouter(prefix="/auth", tags=["authentication"])


def _request_domain(request: Request) -> str:
    return request.url.hostname or ""


@router.get(
    "/nonce",
    summary="Issue a single-use login nonce",
    response_model=NonceIssued,
)
async def issue_nonce(auth_service: AuthServiceDep) -> NonceIssued:
    """Return a nonce and its issue time for the client to sign."""
    return await auth_service.issue_nonce()


@router.post(
    "/login",
    summary="Authenticate with a signed login message",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthServiceDep,
) -> LoginResponse:
    """Verify the signed message and open a session bound to the request host."""
    context = await auth_service.login(payload, _request_domain(request))
    response.set_cookie(
        key=auth_service.sessions.cookie_name,
        value=context.token,
        max_age=auth_service.sessions.ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )
    return LoginResponse(token=context.token, **context.session.model_dump())


@router.post(
    "/logout",
    summary="Revoke the current session",
    response_model=LogoutResponse,
)
async def logout(
    session: CurrentSessionDep,
    response: Response,
    auth_service: AuthServiceDep,
) -> LogoutResponse:
    """Invalidate the caller's session and clear its cookie."""
    result = await auth_service.logout(session)
    response.delete_cookie(key=auth_service.sessions.cookie_name, path="/")
    return result

"""Shared API dependencies for authentication."""

from typing import Annotated

from fastapi import Depends, Request

from l3auth.schemas.auth import SessionContext
from l3auth.services.login import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Return the service constructed at application startup."""
    return request.app.state.auth_service


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


async def require_session(request: Request, auth_service: AuthServiceDep) -> SessionContext:
    """Resolve the caller's session from the bearer header or session cookie.

    Raises:
        MissingSessionError: If neither carries a token.
        InvalidSessionError: If the token has no live session.
    """
    return await auth_service.sessions.require_session_from_request(request)


# Type alias for the authenticated session dependency
CurrentSessionDep = Annotated[SessionContext, Depends(require_session)]

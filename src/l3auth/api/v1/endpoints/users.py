"""Endpoints for the authenticated account."""

from fastapi import APIRouter

from l3auth.api.v1.dependencies import CurrentSessionDep
from l3auth.schemas.auth import L3Session

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", summary="Return the current session", response_model=L3Session)
async def get_current_user(session: CurrentSessionDep) -> L3Session:
    return session.session

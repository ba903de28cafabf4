from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..backend.base import BackendClient
from ..deps.auth import get_backend, require_auth
from ..schemas.auth import AuthContext, SessionOut, SignInRequest

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/sign-in", response_model=SessionOut, summary="Exchange email and password for a session")
async def sign_in(payload: SignInRequest, backend: BackendClient = Depends(get_backend)):
    # AuthenticationError propagates to the handler and becomes a 401 envelope.
    session = await backend.sign_in(payload.email.strip(), payload.password)
    profile = await backend.get_profile(session.access_token)
    return SessionOut(**session.model_dump(), profile=profile)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, summary="End the bearer session")
async def sign_out(auth: AuthContext = Depends(require_auth), backend: BackendClient = Depends(get_backend)):
    await backend.sign_out(auth.access_token)

from __future__ import annotations

from pydantic import BaseModel, Field

from .records import Profile


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"email": "divisionA@drdo.gov.in", "password": "divA123"}
        },
    }


class AuthSession(BaseModel):
    """A signed-in session as handed out by the backend."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_token: str | None = None
    user_id: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "access_token": "<jwt>",
                "token_type": "bearer",
                "expires_in": 3600,
                "refresh_token": None,
                "user_id": "9f1c...",
            }
        }
    }


class SessionOut(AuthSession):
    profile: Profile


class AuthContext(BaseModel):
    """Who is asking: the backend session token plus the caller's profile.

    Passed explicitly into the backend adapters and the dashboard store instead
    of living in module-level state.
    """

    access_token: str
    profile: Profile
    scheme: str = "session"

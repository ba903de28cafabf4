from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings

ALGORITHM = "HS256"
# Hosted backends stamp signed-in user tokens with this audience.
AUDIENCE = "authenticated"
ACCESS_TTL = timedelta(hours=1)


class TokenClaims(BaseModel):
    sub: str
    exp: datetime
    iat: datetime | None = None
    aud: str | None = None
    email: str | None = None
    role: str | None = None


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def issue_access_token(subject: str, *, email: str | None = None, ttl: timedelta = ACCESS_TTL) -> tuple[str, int]:
    """Sign an access token shaped like the ones the hosted backend issues.

    Returns the encoded token and its lifetime in seconds.
    """

    now = _now()
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "aud": AUDIENCE,
        "role": AUDIENCE,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.BACKEND_JWT_SECRET, algorithm=ALGORITHM), int(ttl.total_seconds())


def decode_access_token(token: str) -> TokenClaims:
    """Verify a locally issued session token and return its claims."""

    try:
        decoded = jwt.decode(token, settings.BACKEND_JWT_SECRET, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        claims = TokenClaims.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc
    if claims.exp <= _now():
        raise ValueError("Token expired")
    return claims

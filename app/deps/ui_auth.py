"""Session-cookie helpers for the browser login flow."""

from __future__ import annotations

from uuid import uuid4

from fastapi import Request

from ..schemas.auth import AuthSession
from .auth import SESSION_KEY, SESSION_TOKEN


def is_signed_in(request: Request) -> bool:
    return bool(request.session.get(SESSION_TOKEN))


def start_session(request: Request, session: AuthSession) -> str:
    """Remember the backend session in the cookie; returns the dashboard key."""

    request.session.clear()
    key = uuid4().hex
    request.session[SESSION_TOKEN] = session.access_token
    request.session[SESSION_KEY] = key
    return key


def end_session(request: Request) -> tuple[str | None, str | None]:
    """Forget the cookie session; returns the token and dashboard key it held."""

    token = request.session.get(SESSION_TOKEN)
    key = request.session.get(SESSION_KEY)
    request.session.clear()
    return token, key


def safe_next(target: str | None) -> str:
    """Only follow same-site relative redirects after login."""

    if not target or not target.startswith("/") or target.startswith("//"):
        return "/"
    return target

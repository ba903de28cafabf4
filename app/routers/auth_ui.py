from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..backend.base import BackendClient
from ..core.errors import AuthenticationError, BackendError
from ..core.jinja import get_templates
from ..deps.auth import get_backend, get_registry
from ..deps.ui_auth import end_session, is_signed_in, safe_next, start_session
from ..services.dashboard import DashboardRegistry

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


def _login_page(request: Request, next_url: str, email: str = "", error: str = "", status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"next": next_url, "email": email, "error": error},
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/"):
    if is_signed_in(request):
        return RedirectResponse(url=safe_next(next), status_code=302)
    return _login_page(request, safe_next(next))


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/"),
    backend: BackendClient = Depends(get_backend),
):
    target = safe_next(next)
    try:
        session = await backend.sign_in(email.strip(), password)
    except AuthenticationError as exc:
        return _login_page(request, target, email=email, error=exc.message, status_code=401)
    except BackendError:
        logger.exception("Sign-in failed against the backend")
        return _login_page(
            request,
            target,
            email=email,
            error="An unexpected error occurred. Please try again.",
            status_code=503,
        )
    start_session(request, session)
    return RedirectResponse(url=target, status_code=302)


@router.get("/logout")
async def logout(
    request: Request,
    backend: BackendClient = Depends(get_backend),
    registry: DashboardRegistry = Depends(get_registry),
):
    token, key = end_session(request)
    if key:
        registry.release(key)
    if token:
        try:
            await backend.sign_out(token)
        except BackendError as exc:
            # The cookie is gone either way; the backend session will expire.
            logger.warning("Backend sign-out failed: %s", exc.message)
    return RedirectResponse(url="/login", status_code=302)

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from ..backend.base import BackendClient
from ..core.errors import AuthenticationError
from ..middlewares import division_ctx_var, principal_ctx_var
from ..schemas.auth import AuthContext
from ..services.dashboard import DashboardRegistry, DashboardStore

SESSION_TOKEN = "access_token"
SESSION_KEY = "dashboard_key"


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def get_registry(request: Request) -> DashboardRegistry:
    return request.app.state.registry


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _session_token(request: Request) -> str | None:
    try:
        token = request.session.get(SESSION_TOKEN)
    except AssertionError:
        # SessionMiddleware is not installed (bare test apps).
        return None
    return token or None


def _set_principal(request: Request, auth: AuthContext) -> None:
    principal = f"profile:{auth.profile.id}"
    principal_ctx_var.set(principal)
    division_ctx_var.set(auth.profile.division_label)
    request.state.principal = principal
    request.state.division = auth.profile.division_label


async def require_auth(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    backend: BackendClient = Depends(get_backend),
) -> AuthContext:
    """Resolve the caller from a bearer token or the browser session cookie."""

    token: str | None = None
    scheme_name = "session"
    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() != "bearer" or not credentials:
            raise _unauthorized("Bearer token required")
        token = credentials
        scheme_name = "bearer"
    else:
        token = _session_token(request)
    if not token:
        raise _unauthorized("Login required")

    try:
        profile = await backend.get_profile(token)
    except AuthenticationError as exc:
        if scheme_name == "session":
            key = request.session.get(SESSION_KEY)
            if key:
                get_registry(request).release(key)
            request.session.clear()
        raise _unauthorized(exc.message) from exc

    auth = AuthContext(access_token=token, profile=profile, scheme=scheme_name)
    _set_principal(request, auth)
    return auth


async def get_dashboard(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    registry: DashboardRegistry = Depends(get_registry),
) -> DashboardStore:
    """The browser session's live store, or a one-off loaded store for bearer callers."""

    key = request.session.get(SESSION_KEY) if auth.scheme == "session" else None
    if key:
        return await registry.acquire(key, auth)
    return await registry.detached(auth)

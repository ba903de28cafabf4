from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.jinja import get_templates
from ..deps.auth import get_dashboard
from ..services import roles
from ..services.dashboard import DashboardStore

templates = get_templates()

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    view: str | None = None,
    refresh: bool = False,
    store: DashboardStore = Depends(get_dashboard),
):
    if refresh:
        await store.load()
    role = roles.resolve_view(store.profile, view)
    snapshot = store.snapshot(role)
    context = {
        "snapshot": snapshot,
        "active_view": roles.ROLE_VIEW_NAMES[role],
        "profile": snapshot.profile,
        "view": snapshot.view,
    }
    return templates.TemplateResponse(request, "dashboard.html", context)


@router.post("/activity")
async def log_activity_form(
    action: str = Form(""),
    details: str = Form(""),
    view: str = Form(""),
    store: DashboardStore = Depends(get_dashboard),
):
    # Failures end up in store.errors and show as a banner on the next render.
    await store.log_activity(action, details or None)
    target = f"/?view={view}" if view in roles.VIEW_ROLES else "/"
    return RedirectResponse(url=target, status_code=303)

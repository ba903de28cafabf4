from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps.auth import get_dashboard, require_auth
from ..schemas.auth import AuthContext
from ..schemas.dashboard import DashboardSnapshot, DivisionStats, RoleView
from ..schemas.records import ActivityLog, ActivityLogCreate, InventoryItem, InventoryRequest
from ..services import roles, stats
from ..services.dashboard import DashboardStore

router = APIRouter(prefix="/api/v1", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardSnapshot)
async def api_dashboard(view: str | None = None, store: DashboardStore = Depends(get_dashboard)):
    return store.snapshot(roles.resolve_view(store.profile, view))


@router.get("/stats", response_model=list[DivisionStats])
async def api_stats(
    division: str | None = Query(default=None, description="Division id or 'all'"),
    store: DashboardStore = Depends(get_dashboard),
):
    profile = store.profile
    if division is None:
        return stats.stats_for_profile(store.inventory, profile, store.divisions)
    if not profile.is_admin and division != profile.division_label:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cross-division statistics require admin access")
    return stats.stats_for(store.inventory, division, store.divisions)


@router.get("/inventory", response_model=list[InventoryItem])
async def api_inventory(store: DashboardStore = Depends(get_dashboard)):
    return store.inventory


@router.get("/requests", response_model=list[InventoryRequest])
async def api_requests(store: DashboardStore = Depends(get_dashboard)):
    return store.requests


@router.get("/activity", response_model=list[ActivityLog])
async def api_activity(store: DashboardStore = Depends(get_dashboard)):
    return store.activity_logs


@router.post("/activity", response_model=ActivityLog, status_code=status.HTTP_201_CREATED)
async def api_log_activity(payload: ActivityLogCreate, store: DashboardStore = Depends(get_dashboard)):
    log = await store.log_activity(payload.action, payload.details)
    if log is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=store.errors.get("activity_logs") or "Activity could not be recorded",
        )
    return log


@router.get("/view", response_model=RoleView)
async def api_view(role: str | None = None, auth: AuthContext = Depends(require_auth)):
    """The projection for ``role`` (defaults to the caller's own)."""

    return roles.project_view(role or auth.profile.role, auth.profile.division_label)

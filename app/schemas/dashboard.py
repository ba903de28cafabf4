from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .records import ActivityLog, InventoryItem, InventoryRequest, Profile, Role


class DivisionStats(BaseModel):
    """Counts over one division's inventory; serialised with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    division: str
    total_items: int = Field(0, alias="totalItems")
    total_quantity: int = Field(0, alias="totalQuantity")
    active_items: int = Field(0, alias="activeItems")
    maintenance_items: int = Field(0, alias="maintenanceItems")
    overdue_calibrations: int = Field(0, alias="overdueCalibrations")
    due_calibrations: int = Field(0, alias="dueCalibrations")


class ActionLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    description: str
    link: str
    icon: str


class RoleView(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Optional[Role]
    title: str
    badge: str
    actions: tuple[ActionLink, ...] = ()
    columns: tuple[str, ...] = ()
    can_edit: bool = False
    can_delete: bool = False
    can_review_requests: bool = False
    inventory_limit: int = 10
    request_limit: int = 5
    activity_limit: int = 5
    inventory_heading: str = "Inventory"
    inventory_description: str = ""
    activity_description: str = ""


class DashboardSnapshot(BaseModel):
    """Everything a dashboard page renders, already scoped and truncated."""

    profile: Profile
    view: RoleView
    available_views: list[str]
    stats: list[DivisionStats]
    inventory: list[InventoryItem]
    inventory_total: int
    requests: list[InventoryRequest]
    pending_requests: int
    activity: list[ActivityLog]
    activity_total: int
    loading: bool
    errors: dict[str, str]

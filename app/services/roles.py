"""Static role-to-view table.

Each role maps to a fixed dashboard configuration: the heading and badge, the
navigation actions, which inventory columns render and which row controls are
offered. Anything that is not a known role gets ``DEFAULT_VIEW``, which offers
nothing.
"""

from __future__ import annotations

from typing import Any

from ..schemas.dashboard import ActionLink, RoleView
from ..schemas.records import Profile, Role

BASE_COLUMNS = ("Item Name", "Category", "Quantity", "Location")
ADMIN_COLUMNS = ("Division", "Added By", "Scientist")
TAIL_COLUMNS = ("Status", "Calibration", "Cal. Status", "Last Updated")
ACTIONS_COLUMN = "Actions"

# View names used in the navigation tabs and the ``?view=`` query parameter.
VIEW_ROLES = {
    "admin": Role.ADMIN,
    "division": Role.DIVISION_PERSONNEL,
    "scientist": Role.SCIENTIST,
}
ROLE_VIEW_NAMES = {role: name for name, role in VIEW_ROLES.items()}

_ADMIN_ACTIONS = (
    ActionLink(label="Manage Users", description="Add/edit user accounts", link="/admin/users", icon="users"),
    ActionLink(label="System Analytics", description="View comprehensive reports", link="/analytics", icon="chart"),
    ActionLink(label="Global Audit Logs", description="All system activities", link="/logs", icon="file"),
    ActionLink(label="All Inventories", description="Cross-division access", link="/inventory/view", icon="package"),
)

_PERSONNEL_ACTIONS = (
    ActionLink(label="Add Inventory", description="Add new items to division", link="/inventory/add", icon="plus"),
    ActionLink(label="Manage Inventory", description="Edit/delete division items", link="/inventory/view", icon="package"),
    ActionLink(label="Approve Requests", description="Handle scientist requests", link="/requests/approve", icon="check"),
    ActionLink(label="Division Logs", description="View division activity", link="/logs", icon="file"),
)

_SCIENTIST_ACTIONS = (
    ActionLink(label="View Inventory", description="Browse available items", link="/inventory/view", icon="eye"),
    ActionLink(label="Search Items", description="Find specific equipment", link="/inventory/search", icon="search"),
    ActionLink(label="Request Items", description="Submit access requests", link="/requests", icon="plus"),
    ActionLink(label="My Requests", description="Track request status", link="/requests/status", icon="clock"),
)

DEFAULT_VIEW = RoleView(
    role=None,
    title="Dashboard",
    badge="USER",
    actions=(),
    columns=BASE_COLUMNS + TAIL_COLUMNS,
    can_edit=False,
    can_delete=False,
    can_review_requests=False,
    inventory_limit=10,
)


def project_view(role: Role | str | None, division: str) -> RoleView:
    """Return the view configuration for ``role`` rendering ``division``."""

    try:
        resolved = Role(role) if role is not None else None
    except ValueError:
        resolved = None

    if resolved is Role.ADMIN:
        return RoleView(
            role=Role.ADMIN,
            title="Administrator Dashboard",
            badge="SUPREME ADMIN ACCESS",
            actions=_ADMIN_ACTIONS,
            columns=BASE_COLUMNS + ADMIN_COLUMNS + TAIL_COLUMNS + (ACTIONS_COLUMN,),
            can_edit=True,
            can_delete=True,
            can_review_requests=True,
            inventory_limit=15,
            inventory_heading="All Division Inventories",
            inventory_description="Complete access to all division inventories",
            activity_description="System-wide activity logs",
        )
    if resolved is Role.DIVISION_PERSONNEL:
        return RoleView(
            role=Role.DIVISION_PERSONNEL,
            title=f"Division {division} Control Panel",
            badge=f"DIVISION {division} PERSONNEL",
            actions=_PERSONNEL_ACTIONS,
            columns=BASE_COLUMNS + TAIL_COLUMNS + (ACTIONS_COLUMN,),
            can_edit=True,
            can_delete=False,
            can_review_requests=True,
            inventory_limit=10,
            inventory_heading=f"Division {division} Inventory",
            inventory_description=f"Manage Division {division} inventory items and track status",
            activity_description=f"Division {division} activity logs",
        )
    if resolved is Role.SCIENTIST:
        return RoleView(
            role=Role.SCIENTIST,
            title=f"Division {division} Research Access",
            badge=f"SCIENTIST - DIVISION {division}",
            actions=_SCIENTIST_ACTIONS,
            columns=BASE_COLUMNS + TAIL_COLUMNS,
            can_edit=False,
            can_delete=False,
            can_review_requests=False,
            inventory_limit=10,
            inventory_heading=f"Division {division} Inventory",
            inventory_description=f"View-only access to Division {division} inventory",
            activity_description=f"Division {division} activity logs",
        )
    return DEFAULT_VIEW


def available_views(role: Role | str | None) -> list[str]:
    """Navigation tabs a role may switch between."""

    try:
        resolved = Role(role) if role is not None else None
    except ValueError:
        resolved = None
    if resolved is Role.ADMIN:
        return ["admin", "division", "scientist"]
    if resolved is Role.DIVISION_PERSONNEL:
        return ["division"]
    return ["scientist"]


def resolve_view(profile: Profile, requested: Any = None) -> Role:
    """The role ``profile`` renders as; unknown or forbidden requests fall back to its own."""

    allowed = available_views(profile.role)
    if isinstance(requested, str) and requested in allowed:
        return VIEW_ROLES[requested]
    return VIEW_ROLES[allowed[0]]


__all__ = [
    "DEFAULT_VIEW",
    "ROLE_VIEW_NAMES",
    "VIEW_ROLES",
    "available_views",
    "project_view",
    "resolve_view",
]

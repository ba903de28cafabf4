"""Jinja2 environment and the formatting helpers the dashboard templates use.

Templates are the presentation layer. Every page renders through
``get_templates`` so dates, badges and enum labels look the same everywhere.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import settings

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None

STATUS_BADGES = {
    "active": "badge-ok",
    "current": "badge-ok",
    "approved": "badge-ok",
    "maintenance": "badge-warn",
    "due": "badge-warn",
    "pending": "badge-warn",
    "retired": "badge-muted",
    "overdue": "badge-danger",
    "rejected": "badge-danger",
}


def _to_dt(value: Any) -> datetime | None:
    """Convert strings and datetimes into local, timezone-aware datetimes.

    Naive values are UTC, which is how the backends store timestamps. Plain
    dates are calendar days and are not shifted.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if _LOCAL_TZ:
        dt = dt.astimezone(_LOCAL_TZ)
    return dt


def _fmt_dt(value: Any, fmt: str = "%Y-%m-%d %I:%M %p") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_date(value: Any, fmt: str = "%Y-%m-%d") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _status_badge(value: Any) -> str:
    """Map an enum value to the CSS class of its badge."""

    key = getattr(value, "value", value)
    return STATUS_BADGES.get(str(key), "badge-muted")


def _enum_label(value: Any) -> str:
    return str(getattr(value, "value", value) or "")


def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.templates_dir))
    env = templates.env
    env.filters["fmt_dt"] = _fmt_dt
    env.filters["fmt_date"] = _fmt_date
    env.filters["status_badge"] = _status_badge
    env.filters["enum_label"] = _enum_label
    return templates

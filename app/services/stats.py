"""Per-division aggregates over an already-fetched inventory collection."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..schemas.dashboard import DivisionStats
from ..schemas.records import (
    CalibrationStatus,
    InventoryItem,
    InventoryRequest,
    ItemStatus,
    Profile,
    RequestStatus,
)

ALL_DIVISIONS = "all"


def division_stats(items: Iterable[InventoryItem], division: str) -> DivisionStats:
    """Aggregate the items that belong to ``division``.

    Retired items count towards the totals but neither the active nor the
    maintenance bucket.
    """

    total_items = 0
    total_quantity = 0
    active = 0
    maintenance = 0
    overdue = 0
    due = 0
    for item in items:
        if item.division_id != division:
            continue
        total_items += 1
        total_quantity += item.quantity
        if item.status is ItemStatus.ACTIVE:
            active += 1
        elif item.status is ItemStatus.MAINTENANCE:
            maintenance += 1
        if item.calibration_status is CalibrationStatus.OVERDUE:
            overdue += 1
        elif item.calibration_status is CalibrationStatus.DUE:
            due += 1

    return DivisionStats(
        division=division,
        total_items=total_items,
        total_quantity=total_quantity,
        active_items=active,
        maintenance_items=maintenance,
        overdue_calibrations=overdue,
        due_calibrations=due,
    )


def all_division_stats(items: Iterable[InventoryItem], divisions: Sequence[str]) -> list[DivisionStats]:
    """One aggregate per known division, in the order ``divisions`` lists them."""

    snapshot = list(items)
    return [division_stats(snapshot, division) for division in divisions]


def stats_for(items: Iterable[InventoryItem], division: str, divisions: Sequence[str]) -> list[DivisionStats]:
    if division.lower() == ALL_DIVISIONS:
        return all_division_stats(items, divisions)
    return [division_stats(items, division)]


def stats_for_profile(
    items: Iterable[InventoryItem], profile: Profile, divisions: Sequence[str]
) -> list[DivisionStats]:
    """Admins get every division; everyone else only their own."""

    if profile.is_admin:
        return all_division_stats(items, divisions)
    return [division_stats(items, profile.division_label)]


def pending_request_count(requests: Iterable[InventoryRequest]) -> int:
    return sum(1 for request in requests if request.status is RequestStatus.PENDING)


__all__ = [
    "ALL_DIVISIONS",
    "all_division_stats",
    "division_stats",
    "pending_request_count",
    "stats_for",
    "stats_for_profile",
]

"""Division statistics over fetched inventory."""

import pytest

from app.core.config import DEFAULT_DIVISIONS
from app.schemas.records import Profile
from app.services.stats import (
    all_division_stats,
    division_stats,
    pending_request_count,
    stats_for,
    stats_for_profile,
)

from conftest import make_item


@pytest.fixture()
def mixed_items():
    return [
        make_item(id="1", division_id="A", quantity=8, status="active", calibration_status="current"),
        make_item(id="2", division_id="A", quantity=2, status="maintenance", calibration_status="overdue"),
        make_item(id="3", division_id="B", quantity=5, status="active", calibration_status="due"),
        make_item(id="4", division_id="B", quantity=4, status="retired", calibration_status="overdue"),
        make_item(id="5", division_id="D", quantity=6, status="maintenance", calibration_status="due"),
        make_item(id="6", division_id="H", quantity=0, status="active", calibration_status="current"),
    ]


def test_division_a_example_matches_expected_counts():
    items = [
        make_item(id="1", division_id="A", quantity=8, status="active", calibration_status="current"),
        make_item(id="2", division_id="A", quantity=2, status="maintenance", calibration_status="overdue"),
    ]

    stats = division_stats(items, "A")

    assert stats.model_dump(by_alias=True) == {
        "division": "A",
        "totalItems": 2,
        "totalQuantity": 10,
        "activeItems": 1,
        "maintenanceItems": 1,
        "overdueCalibrations": 1,
        "dueCalibrations": 0,
    }


def test_empty_collection_yields_zeroes_for_every_division():
    for division in DEFAULT_DIVISIONS:
        stats = division_stats([], division)
        assert stats.division == division
        assert (
            stats.total_items,
            stats.total_quantity,
            stats.active_items,
            stats.maintenance_items,
            stats.overdue_calibrations,
            stats.due_calibrations,
        ) == (0, 0, 0, 0, 0, 0)


def test_per_division_quantities_add_up_to_collection_total(mixed_items):
    per_division = all_division_stats(mixed_items, DEFAULT_DIVISIONS)

    assert sum(row.total_quantity for row in per_division) == sum(item.quantity for item in mixed_items)
    assert sum(row.total_items for row in per_division) == len(mixed_items)


def test_retired_items_count_in_totals_but_not_status_buckets(mixed_items):
    for row in all_division_stats(mixed_items, DEFAULT_DIVISIONS):
        assert row.active_items + row.maintenance_items <= row.total_items

    division_b = division_stats(mixed_items, "B")
    assert division_b.total_items == 2
    assert division_b.active_items == 1
    assert division_b.maintenance_items == 0
    assert division_b.overdue_calibrations == 1
    assert division_b.due_calibrations == 1


def test_all_divisions_follow_configured_order(mixed_items):
    order = ["H", "B", "A"]
    rows = all_division_stats(mixed_items, order)
    assert [row.division for row in rows] == order


def test_all_divisions_accepts_one_shot_iterables(mixed_items):
    rows = all_division_stats(iter(mixed_items), DEFAULT_DIVISIONS)
    assert rows[0].total_items == 2
    assert rows[1].total_items == 2


def test_aggregation_is_idempotent(mixed_items):
    first = all_division_stats(mixed_items, DEFAULT_DIVISIONS)
    second = all_division_stats(mixed_items, DEFAULT_DIVISIONS)
    assert first == second


def test_stats_for_all_and_single_division(mixed_items):
    everything = stats_for(mixed_items, "all", DEFAULT_DIVISIONS)
    assert len(everything) == len(DEFAULT_DIVISIONS)

    single = stats_for(mixed_items, "D", DEFAULT_DIVISIONS)
    assert len(single) == 1
    assert single[0].maintenance_items == 1
    assert single[0].due_calibrations == 1


def test_stats_for_profile_limits_non_admins_to_their_division(mixed_items):
    admin = Profile(id="a", name="Admin", email="admin@example.org", role="admin")
    staff = Profile(id="b", name="Staff", email="staff@example.org", role="division_personnel", division_id="B")

    assert [row.division for row in stats_for_profile(mixed_items, admin, DEFAULT_DIVISIONS)] == list(
        DEFAULT_DIVISIONS
    )
    staff_rows = stats_for_profile(mixed_items, staff, DEFAULT_DIVISIONS)
    assert [row.division for row in staff_rows] == ["B"]
    assert staff_rows[0].total_quantity == 9


def test_pending_request_count_ignores_decided_requests():
    from datetime import datetime, timezone

    from app.schemas.records import InventoryRequest

    def request(status):
        return InventoryRequest(
            id=status,
            scientist_id="s",
            item_requested="GPU",
            quantity=1,
            reason="training",
            status=status,
            division_id="A",
            created_at=datetime(2024, 1, 22, tzinfo=timezone.utc),
        )

    assert pending_request_count([request("pending"), request("approved"), request("rejected")]) == 1
    assert pending_request_count([]) == 0

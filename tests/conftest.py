import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("BACKEND_MODE", "sql")

from app.backend.sql import SqlBackend
from app.core.config import DEFAULT_DIVISIONS
from app.db.seed import ensure_demo_data
from app.db.session import build_engine, build_sessionmaker
from app.schemas.records import InventoryItem
from app.services.realtime import ChangeHub


@pytest.fixture()
def engine(tmp_path):
    # A file database gives each worker thread its own connection.
    engine = build_engine(f"sqlite:///{tmp_path / 'inventory.db'}")
    # Low bcrypt cost keeps the seeded accounts fast to create.
    ensure_demo_data(engine, list(DEFAULT_DIVISIONS), rounds=4)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def hub():
    return ChangeHub()


@pytest.fixture()
def sql_backend(engine, hub):
    return SqlBackend(build_sessionmaker(engine), hub=hub)


def make_item(**overrides) -> InventoryItem:
    now = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
    data = {
        "id": overrides.pop("id", "item-1"),
        "item_name": "NVIDIA RTX 4090 GPU",
        "category": "Computing",
        "quantity": 1,
        "location": "Lab-A1",
        "status": "active",
        "division_id": "A",
        "added_by": "user-1",
        "scientist_assigned": None,
        "calibration_date": date(2024, 1, 10),
        "calibration_status": "current",
        "last_updated": now,
        "created_at": now,
    }
    data.update(overrides)
    return InventoryItem.model_validate(data)

"""Demo data for the SQL backend.

Creates the tables when missing and, on an empty database, loads eight
divisions with a handful of accounts, inventory, requests and activity so the
dashboard has something to show for every role.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..backend.sql import hash_password
from ..models import ActivityLogRow, DivisionRow, InventoryItemRow, ProfileRow, RequestRow
from .session import Base, build_sessionmaker

logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = [
    # (email, password, name, role, division)
    ("admin@drdo.gov.in", "admin123", "Aripilli Bhavana", "admin", None),
    ("divisionA@drdo.gov.in", "divA123", "Rajesh Kumar", "division_personnel", "A"),
    ("divisionB@drdo.gov.in", "divB123", "Priya Sharma", "division_personnel", "B"),
    ("divisionC@drdo.gov.in", "divC123", "Amit Singh", "division_personnel", "C"),
    ("divisionD@drdo.gov.in", "divD123", "Sunita Rao", "division_personnel", "D"),
    ("ananya.gupta@drdo.gov.in", "sci123", "Dr. Ananya Gupta", "scientist", "A"),
    ("vikram.mehta@drdo.gov.in", "sci123", "Dr. Vikram Mehta", "scientist", "B"),
]

DEMO_INVENTORY = [
    # (name, category, qty, location, status, division, calibrated days ago, calibration status)
    ("NVIDIA RTX 4090 GPU", "Computing", 8, "Lab-A1", "active", "A", 30, "current"),
    ("Quantum Computer Module", "Computing", 2, "Lab-A1", "maintenance", "A", 400, "overdue"),
    ("Spectrum Analyzer", "Electronics", 5, "Lab-B2", "active", "B", 60, "current"),
    ("Oscilloscope 500MHz", "Electronics", 6, "Lab-B1", "active", "B", 340, "due"),
    ("RF Signal Generator", "Electronics", 4, "Lab-B3", "maintenance", "B", 120, "current"),
    ("Thermal Imaging Camera", "Optics", 5, "Lab-C1", "active", "C", 90, "current"),
    ("Radar Test Bench", "Radar", 6, "Hangar-D", "active", "D", 20, "current"),
    ("Antenna Array Kit", "Radar", 5, "Hangar-D", "active", "D", 350, "due"),
    ("Vibration Table", "Mechanical", 4, "Lab-D2", "active", "D", 45, "current"),
    ("Legacy Plotter", "Peripherals", 5, "Store-D", "retired", "D", 900, "overdue"),
]

DEMO_REQUESTS = [
    # (scientist email, item, qty, reason, status, division)
    ("ananya.gupta@drdo.gov.in", "Additional GPU", 2, "AI model training", "pending", "A"),
    ("ananya.gupta@drdo.gov.in", "Logic Analyzer", 1, "Board bring-up", "approved", "A"),
    ("vikram.mehta@drdo.gov.in", "Spectrum Analyzer", 1, "EMI survey", "pending", "B"),
]

DEMO_ACTIVITY = [
    # (actor email, action, division, details)
    ("divisionA@drdo.gov.in", "Added inventory", "A", "Added NVIDIA RTX 4090 GPU"),
    ("divisionB@drdo.gov.in", "Updated calibration", "B", "Spectrum Analyzer calibrated"),
    ("admin@drdo.gov.in", "Reviewed audit trail", "ADMIN", None),
]


def _seed(db: Session, divisions: list[str], rounds: int) -> None:
    now = datetime.now(tz=timezone.utc)
    for division in divisions:
        db.add(DivisionRow(id=division, name=f"Division {division}"))
    db.flush()

    accounts: dict[str, ProfileRow] = {}
    for email, password, name, role, division in DEMO_ACCOUNTS:
        if division is not None and division not in divisions:
            continue
        row = ProfileRow(
            email=email,
            password_hash=hash_password(password, rounds=rounds),
            name=name,
            role=role,
            division_id=division,
        )
        db.add(row)
        accounts[email] = row
    db.flush()

    scientists = {row.division_id: row for row in accounts.values() if row.role == "scientist"}
    staff = {row.division_id: row for row in accounts.values() if row.role == "division_personnel"}
    admin = accounts.get("admin@drdo.gov.in")
    for offset, (name, category, qty, location, status, division, age, calib) in enumerate(DEMO_INVENTORY):
        owner = staff.get(division) or admin
        if division not in divisions or owner is None:
            continue
        scientist = scientists.get(division)
        db.add(
            InventoryItemRow(
                item_name=name,
                category=category,
                quantity=qty,
                location=location,
                status=status,
                division_id=division,
                added_by=owner.id,
                scientist_assigned=scientist.id if scientist else None,
                calibration_date=date.today() - timedelta(days=age),
                calibration_status=calib,
                created_at=now - timedelta(hours=offset),
                last_updated=now - timedelta(hours=offset),
            )
        )

    for offset, (email, item, qty, reason, status, division) in enumerate(DEMO_REQUESTS):
        scientist = accounts.get(email)
        if scientist is None or division not in divisions:
            continue
        db.add(
            RequestRow(
                scientist_id=scientist.id,
                item_requested=item,
                quantity=qty,
                reason=reason,
                status=status,
                division_id=division,
                created_at=now - timedelta(days=offset),
            )
        )

    for offset, (email, action, division, details) in enumerate(DEMO_ACTIVITY):
        actor = accounts.get(email)
        if actor is None:
            continue
        db.add(
            ActivityLogRow(
                user_id=actor.id,
                action=action,
                division_id=division,
                details=details,
                created_at=now - timedelta(minutes=30 * (offset + 1)),
            )
        )


def ensure_demo_data(engine: Engine, divisions: list[str], *, rounds: int = 12) -> bool:
    """Create tables and seed an empty database; returns True when rows were added."""

    Base.metadata.create_all(bind=engine)
    factory = build_sessionmaker(engine)
    with factory() as db:
        if db.scalar(select(func.count()).select_from(ProfileRow)):
            return False
        _seed(db, divisions, rounds)
        db.commit()
    logger.info("Seeded demo data", extra={"extra_data": {"divisions": divisions}})
    return True

import asyncio
from datetime import date, timedelta

import pytest

from app.backend.base import INVALID_CREDENTIALS
from app.core.errors import AuthenticationError, BackendError
from app.core.security import issue_access_token
from app.db.session import build_sessionmaker
from app.models import InventoryItemRow
from app.schemas.auth import AuthContext
from app.schemas.records import ActivityLogCreate, ChangeType, Table


def _sign_in(backend, email, password):
    async def flow():
        session = await backend.sign_in(email, password)
        profile = await backend.get_profile(session.access_token)
        return AuthContext(access_token=session.access_token, profile=profile)

    return asyncio.run(flow())


def test_sign_in_is_case_insensitive_and_loads_profile(sql_backend):
    auth = _sign_in(sql_backend, "DivisionA@DRDO.gov.in", "divA123")

    assert auth.profile.email == "divisionA@drdo.gov.in"
    assert auth.profile.role.value == "division_personnel"
    assert auth.profile.division_id == "A"


@pytest.mark.parametrize(
    "email,password",
    [("divisionA@drdo.gov.in", "wrong"), ("nobody@drdo.gov.in", "divA123"), ("", "")],
)
def test_bad_credentials_raise_the_friendly_message(sql_backend, email, password):
    with pytest.raises(AuthenticationError) as excinfo:
        asyncio.run(sql_backend.sign_in(email, password))

    assert excinfo.value.message == INVALID_CREDENTIALS


def test_garbage_token_is_an_authentication_error(sql_backend):
    with pytest.raises(AuthenticationError):
        asyncio.run(sql_backend.get_profile("not-a-token"))


def test_non_admins_only_read_their_division(sql_backend):
    staff = _sign_in(sql_backend, "divisionB@drdo.gov.in", "divB123")

    async def read():
        return (
            await sql_backend.list_inventory(staff),
            await sql_backend.list_requests(staff),
            await sql_backend.list_activity_logs(staff),
        )

    inventory, requests, activity = asyncio.run(read())

    assert len(inventory) == 3
    assert {item.division_id for item in inventory} == {"B"}
    assert [request.item_requested for request in requests] == ["Spectrum Analyzer"]
    assert {log.division_id for log in activity} == {"B"}


def test_admin_reads_every_division_newest_first(sql_backend):
    admin = _sign_in(sql_backend, "admin@drdo.gov.in", "admin123")

    inventory = asyncio.run(sql_backend.list_inventory(admin))
    activity = asyncio.run(sql_backend.list_activity_logs(admin))

    assert len(inventory) == 10
    assert {item.division_id for item in inventory} == {"A", "B", "C", "D"}
    assert inventory[0].item_name == "NVIDIA RTX 4090 GPU"
    assert inventory[0].added_by_name == "Rajesh Kumar"
    assert inventory[0].scientist_name == "Dr. Ananya Gupta"
    created = [item.created_at for item in inventory]
    assert created == sorted(created, reverse=True)
    assert "ADMIN" in {log.division_id for log in activity}


def test_activity_limit_is_applied(sql_backend):
    admin = _sign_in(sql_backend, "admin@drdo.gov.in", "admin123")

    assert len(asyncio.run(sql_backend.list_activity_logs(admin, limit=2))) == 2


def test_insert_activity_stamps_division_and_publishes(sql_backend, hub):
    scientist = _sign_in(sql_backend, "ananya.gupta@drdo.gov.in", "sci123")
    received = []

    async def on_change(change):
        received.append(change)

    hub.subscribe(Table.ACTIVITY_LOGS, on_change, events=[ChangeType.INSERT])

    log = asyncio.run(
        sql_backend.insert_activity_log(scientist, ActivityLogCreate(action="  Viewed inventory ", details=""))
    )

    assert log.action == "Viewed inventory"
    assert log.details is None
    assert log.division_id == "A"
    assert log.user_name == "Dr. Ananya Gupta"
    assert len(received) == 1
    assert received[0].record["id"] == log.id


def test_admin_activity_uses_admin_division(sql_backend):
    admin = _sign_in(sql_backend, "admin@drdo.gov.in", "admin123")

    log = asyncio.run(sql_backend.insert_activity_log(admin, ActivityLogCreate(action="Audit")))

    assert log.division_id == "ADMIN"


def test_expired_token_is_an_authentication_error(sql_backend):
    staff = _sign_in(sql_backend, "divisionA@drdo.gov.in", "divA123")
    token, _ = issue_access_token(staff.profile.id, ttl=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError):
        asyncio.run(sql_backend.get_profile(token))


def test_divisions_are_scoped_like_every_other_table(sql_backend):
    admin = _sign_in(sql_backend, "admin@drdo.gov.in", "admin123")
    staff = _sign_in(sql_backend, "divisionA@drdo.gov.in", "divA123")

    everything = asyncio.run(sql_backend.list_divisions(admin))
    own = asyncio.run(sql_backend.list_divisions(staff))

    assert [division.id for division in everything] == ["A", "B", "C", "D", "E", "F", "G", "H"]
    assert [(division.id, division.name) for division in own] == [("A", "Division A")]


def test_row_outside_the_allowed_values_is_a_backend_error(engine, sql_backend):
    staff = _sign_in(sql_backend, "divisionA@drdo.gov.in", "divA123")
    with build_sessionmaker(engine)() as db:
        db.add(
            InventoryItemRow(
                item_name="Oscilloscope",
                category="Test Equipment",
                quantity=1,
                location="Lab-A2",
                status="broken",
                division_id="A",
                added_by=staff.profile.id,
                calibration_date=date(2024, 1, 10),
            )
        )
        db.commit()

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(sql_backend.list_inventory(staff))

    assert "malformed" in excinfo.value.message

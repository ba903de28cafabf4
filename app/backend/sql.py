"""Local stand-in for the hosted backend, backed by SQLAlchemy.

Used for development, demos and tests. It honours the same contract as the REST
adapter, including the backend's row rule that only admins read across
divisions, and announces its own writes on the change hub.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

import bcrypt
from pydantic import ValidationError
from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from ..core.errors import AuthenticationError, BackendError
from ..core.security import decode_access_token, issue_access_token
from ..models import ActivityLogRow, DivisionRow, InventoryItemRow, ProfileRow, RequestRow
from ..schemas.auth import AuthContext, AuthSession
from ..schemas.records import (
    ActivityLog,
    ActivityLogCreate,
    ChangeType,
    Division,
    InventoryItem,
    InventoryRequest,
    Profile,
    Table,
)
from ..services.realtime import ChangeHub, TableChange
from .base import INVALID_CREDENTIALS, BackendClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def hash_password(plain: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def _verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the table; treat as a failed login.
        return False


def _scope(stmt, column, auth: AuthContext):
    if auth.profile.is_admin:
        return stmt
    return stmt.where(column == auth.profile.division_id)


class SqlBackend(BackendClient):
    name = "sql"

    def __init__(self, session_factory: sessionmaker, hub: ChangeHub | None = None) -> None:
        self.session_factory = session_factory
        self.hub = hub

    async def _run(self, context: str, work: Callable[[Session], T]) -> T:
        def _call() -> T:
            with self.session_factory() as db:
                return work(db)

        try:
            return await run_in_threadpool(_call)
        except SQLAlchemyError as exc:
            logger.error("Database error during %s: %s", context, exc)
            raise BackendError(f"{context} failed") from exc
        except ValidationError as exc:
            logger.error("Malformed row during %s: %s", context, exc)
            raise BackendError(f"{context} returned malformed rows") from exc

    async def sign_in(self, email: str, password: str) -> AuthSession:
        normalized = (email or "").strip().lower()

        def work(db: Session) -> ProfileRow | None:
            stmt = select(ProfileRow).where(func.lower(ProfileRow.email) == normalized)
            return db.execute(stmt).scalars().first()

        row = await self._run("sign in", work)
        if row is None or not _verify_password(password or "", row.password_hash):
            logger.info("Sign-in rejected for %s", normalized)
            raise AuthenticationError(INVALID_CREDENTIALS, status_code=400)
        token, expires_in = issue_access_token(row.id, email=row.email)
        return AuthSession(access_token=token, expires_in=expires_in, user_id=row.id)

    async def sign_out(self, access_token: str) -> None:
        # Tokens are stateless here; they simply run out.
        return None

    async def get_profile(self, access_token: str) -> Profile:
        try:
            claims = decode_access_token(access_token)
        except ValueError as exc:
            raise AuthenticationError(str(exc), status_code=401) from exc

        def work(db: Session) -> Profile | None:
            row = db.get(ProfileRow, claims.sub)
            return Profile.model_validate(row) if row is not None else None

        profile = await self._run("load profile", work)
        if profile is None:
            raise AuthenticationError("No profile exists for this account", status_code=401)
        return profile

    async def list_divisions(self, auth: AuthContext) -> list[Division]:
        def work(db: Session) -> list[Division]:
            stmt = _scope(select(DivisionRow), DivisionRow.id, auth).order_by(DivisionRow.id)
            return [Division.model_validate(row) for row in db.execute(stmt).scalars().all()]

        return await self._run("fetch divisions", work)

    async def list_inventory(self, auth: AuthContext) -> list[InventoryItem]:
        def work(db: Session) -> list[InventoryItem]:
            stmt = _scope(select(InventoryItemRow), InventoryItemRow.division_id, auth).order_by(
                desc(InventoryItemRow.created_at), desc(InventoryItemRow.id)
            )
            rows = db.execute(stmt).unique().scalars().all()
            return [InventoryItem.model_validate(row) for row in rows]

        return await self._run("fetch inventory_items", work)

    async def list_requests(self, auth: AuthContext) -> list[InventoryRequest]:
        def work(db: Session) -> list[InventoryRequest]:
            stmt = _scope(select(RequestRow), RequestRow.division_id, auth).order_by(
                desc(RequestRow.created_at), desc(RequestRow.id)
            )
            rows = db.execute(stmt).unique().scalars().all()
            return [InventoryRequest.model_validate(row) for row in rows]

        return await self._run("fetch requests", work)

    async def list_activity_logs(self, auth: AuthContext, limit: int = 20) -> list[ActivityLog]:
        def work(db: Session) -> list[ActivityLog]:
            stmt = (
                _scope(select(ActivityLogRow), ActivityLogRow.division_id, auth)
                .order_by(desc(ActivityLogRow.created_at), desc(ActivityLogRow.id))
                .limit(limit)
            )
            rows = db.execute(stmt).unique().scalars().all()
            return [ActivityLog.model_validate(row) for row in rows]

        return await self._run("fetch activity_logs", work)

    async def insert_activity_log(self, auth: AuthContext, entry: ActivityLogCreate) -> ActivityLog:
        def work(db: Session) -> ActivityLog:
            row = ActivityLogRow(
                action=entry.action,
                details=entry.details,
                user_id=auth.profile.id,
                division_id=auth.profile.division_label,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return ActivityLog.model_validate(row)

        log = await self._run("append activity log", work)
        if self.hub is not None:
            await self.hub.publish(
                TableChange(
                    table=Table.ACTIVITY_LOGS,
                    type=ChangeType.INSERT,
                    record=log.model_dump(mode="json", exclude={"user_name"}),
                )
            )
        return log

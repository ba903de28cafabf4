"""Per-session dashboard state.

A ``DashboardStore`` is what a browser tab's dashboard "mounts": it loads the
three collections the signed-in profile may see, keeps them current by
re-fetching whenever the change hub says a table moved, and hands out render
snapshots. Fetch failures are recorded next to the collection that failed and
the previously loaded rows stay on screen.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Sequence

from ..backend.base import BackendClient
from ..core.errors import BackendError
from ..schemas.auth import AuthContext
from ..schemas.dashboard import DashboardSnapshot
from ..schemas.records import (
    ActivityLog,
    ActivityLogCreate,
    ChangeType,
    InventoryItem,
    InventoryRequest,
    Role,
    Table,
)
from . import roles, stats
from .realtime import ChangeHub, Subscription, TableChange

logger = logging.getLogger(__name__)


class DashboardStore:
    def __init__(
        self,
        backend: BackendClient,
        auth: AuthContext,
        hub: ChangeHub,
        *,
        divisions: Sequence[str],
        activity_limit: int = 20,
    ) -> None:
        self.backend = backend
        self.auth = auth
        self.hub = hub
        self.divisions = list(divisions)
        self.activity_limit = activity_limit
        self.inventory: list[InventoryItem] = []
        self.requests: list[InventoryRequest] = []
        self.activity_logs: list[ActivityLog] = []
        self.errors: dict[str, str] = {}
        self.loading = False
        self._subscriptions: list[Subscription] = []

    @property
    def profile(self):
        return self.auth.profile

    # ---- fetching

    async def _refresh(self, table: Table, fetch) -> bool:
        try:
            rows = await fetch()
        except BackendError as exc:
            self.errors[table.value] = exc.message
            logger.warning(
                "dashboard.refresh_failed",
                extra={"extra_data": {"table": table.value, "error": exc.message, "profile": self.profile.id}},
            )
            return False
        # Last completed fetch wins; overlapping refreshes simply overwrite.
        setattr(self, _ATTRIBUTES[table], rows)
        self.errors.pop(table.value, None)
        return True

    async def refresh_inventory(self) -> bool:
        return await self._refresh(Table.INVENTORY, lambda: self.backend.list_inventory(self.auth))

    async def refresh_requests(self) -> bool:
        return await self._refresh(Table.REQUESTS, lambda: self.backend.list_requests(self.auth))

    async def refresh_activity(self) -> bool:
        return await self._refresh(
            Table.ACTIVITY_LOGS,
            lambda: self.backend.list_activity_logs(self.auth, limit=self.activity_limit),
        )

    async def load(self) -> None:
        self.loading = True
        try:
            await asyncio.gather(
                self.refresh_inventory(),
                self.refresh_requests(),
                self.refresh_activity(),
            )
        finally:
            self.loading = False

    # ---- realtime

    @property
    def is_open(self) -> bool:
        return bool(self._subscriptions)

    def open(self) -> None:
        """Subscribe to change hints; safe to call more than once."""

        if self._subscriptions:
            return

        async def on_inventory(_change: TableChange) -> None:
            await self.refresh_inventory()

        async def on_requests(_change: TableChange) -> None:
            await self.refresh_requests()

        async def on_activity(_change: TableChange) -> None:
            await self.refresh_activity()

        self._subscriptions = [
            self.hub.subscribe(Table.INVENTORY, on_inventory),
            self.hub.subscribe(Table.REQUESTS, on_requests),
            self.hub.subscribe(Table.ACTIVITY_LOGS, on_activity, events=[ChangeType.INSERT]),
        ]

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    # ---- writes

    async def log_activity(self, action: str, details: str | None = None) -> ActivityLog | None:
        """Append an activity row for this profile; failures are logged, not raised."""

        try:
            entry = ActivityLogCreate(action=action, details=details)
            log = await self.backend.insert_activity_log(self.auth, entry)
        except (BackendError, ValueError) as exc:
            message = getattr(exc, "message", None) or str(exc)
            self.errors[Table.ACTIVITY_LOGS.value] = message
            logger.error(
                "dashboard.log_activity_failed",
                extra={"extra_data": {"action": action, "error": message, "profile": self.profile.id}},
            )
            return None
        # Backends that do not announce their own writes would leave the row unseen.
        await self.refresh_activity()
        return log

    # ---- rendering

    def snapshot(self, view_role: Role | None = None) -> DashboardSnapshot:
        profile = self.profile
        role = view_role or roles.resolve_view(profile)
        view = roles.project_view(role, profile.division_label)

        if role is Role.ADMIN and profile.is_admin:
            division_stats = stats.all_division_stats(self.inventory, self.divisions)
        else:
            division_stats = [stats.division_stats(self.inventory, profile.division_label)]

        requests: list[InventoryRequest] = []
        pending = 0
        if view.can_review_requests:
            requests = self.requests[: view.request_limit]
            pending = stats.pending_request_count(self.requests)

        return DashboardSnapshot(
            profile=profile,
            view=view,
            available_views=roles.available_views(profile.role),
            stats=division_stats,
            inventory=self.inventory[: view.inventory_limit],
            inventory_total=len(self.inventory),
            requests=requests,
            pending_requests=pending,
            activity=self.activity_logs[: view.activity_limit],
            activity_total=len(self.activity_logs),
            loading=self.loading,
            errors=dict(self.errors),
        )


_ATTRIBUTES = {
    Table.INVENTORY: "inventory",
    Table.REQUESTS: "requests",
    Table.ACTIVITY_LOGS: "activity_logs",
}


class DashboardRegistry:
    """One store per signed-in browser session.

    Stores are released on sign-out, when the session's token is rejected, or
    once nobody has touched them for ``max_idle`` seconds (the cookie lifetime),
    since an expired or abandoned cookie never says goodbye.
    """

    def __init__(
        self,
        backend: BackendClient,
        hub: ChangeHub,
        *,
        divisions: Sequence[str],
        activity_limit: int = 20,
        max_idle: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.hub = hub
        self.divisions = list(divisions)
        self.activity_limit = activity_limit
        self.max_idle = max_idle
        self.clock = clock
        self._stores: dict[str, DashboardStore] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._stores)

    def evict_idle(self) -> int:
        """Release stores idle longer than ``max_idle``; returns how many went."""

        if self.max_idle is None:
            return 0
        cutoff = self.clock() - self.max_idle
        stale = [key for key, seen in self._last_seen.items() if seen < cutoff]
        for key in stale:
            self.release(key)
        if stale:
            logger.info("dashboard.evicted_idle", extra={"extra_data": {"count": len(stale)}})
        return len(stale)

    async def acquire(self, key: str, auth: AuthContext) -> DashboardStore:
        self.evict_idle()
        self._last_seen[key] = self.clock()
        store = self._stores.get(key)
        if store is not None and store.profile.id == auth.profile.id:
            # Same person, possibly a renewed token.
            store.auth = auth
            return store
        if store is not None:
            store.close()
        store = self._build(auth)
        self._stores[key] = store
        store.open()
        await store.load()
        return store

    async def detached(self, auth: AuthContext) -> DashboardStore:
        """A loaded store that is neither subscribed nor remembered."""

        store = self._build(auth)
        await store.load()
        return store

    def _build(self, auth: AuthContext) -> DashboardStore:
        return DashboardStore(
            self.backend,
            auth,
            self.hub,
            divisions=self.divisions,
            activity_limit=self.activity_limit,
        )

    def release(self, key: str) -> None:
        self._last_seen.pop(key, None)
        store = self._stores.pop(key, None)
        if store is not None:
            store.close()

    def release_all(self) -> None:
        for key in list(self._stores):
            self.release(key)

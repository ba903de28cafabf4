"""In-process fan-out of backend change notifications.

The backend tells us *that* a table changed (database webhook, or the SQL demo
adapter after a write). Subscribers only treat a notification as a hint to
re-fetch; the record payload is informational and never merged into state.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel

from ..schemas.records import ChangeType, Table

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["TableChange"], Awaitable[None]]


class TableChange(BaseModel):
    table: Table
    type: ChangeType
    record: Optional[dict[str, Any]] = None
    old_record: Optional[dict[str, Any]] = None


class Subscription:
    def __init__(
        self,
        hub: "ChangeHub",
        table: Table,
        callback: ChangeCallback,
        events: frozenset[ChangeType] | None,
    ) -> None:
        self.hub = hub
        self.table = table
        self.callback = callback
        self.events = events
        self.closed = False

    def matches(self, change: TableChange) -> bool:
        if self.closed or change.table is not self.table:
            return False
        return self.events is None or change.type in self.events

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.hub._discard(self)


class ChangeHub:
    """Keeps the open subscriptions and delivers each change to the matching ones."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: Table,
        callback: ChangeCallback,
        events: Iterable[ChangeType] | None = None,
    ) -> Subscription:
        selected = frozenset(ChangeType(event) for event in events) if events is not None else None
        subscription = Subscription(self, Table(table), callback, selected)
        self._subscriptions.append(subscription)
        return subscription

    def _discard(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, change: TableChange) -> int:
        """Deliver ``change``; returns how many subscribers were notified."""

        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.matches(change):
                continue
            try:
                await subscription.callback(change)
            except Exception:
                logger.exception(
                    "realtime.callback_failed",
                    extra={"extra_data": {"table": change.table.value, "type": change.type.value}},
                )
                continue
            delivered += 1
        return delivered


hub = ChangeHub()

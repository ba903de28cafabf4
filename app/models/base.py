from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_id() -> str:
    return str(uuid4())

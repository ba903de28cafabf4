from __future__ import annotations

from abc import ABC, abstractmethod

from ..schemas.auth import AuthContext, AuthSession
from ..schemas.records import (
    ActivityLog,
    ActivityLogCreate,
    Division,
    InventoryItem,
    InventoryRequest,
    Profile,
)

INVALID_CREDENTIALS = "Invalid email or password. Please check your credentials."


class BackendClient(ABC):
    """What the dashboard needs from the backend-as-a-service.

    Reads return newest-first collections joined with display names. Division
    scoping is the backend's job: an adapter hands back only the rows the
    signed-in profile may see. Bad credentials raise ``AuthenticationError``;
    every other failure raises ``BackendError``.
    """

    name = "backend"

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None: ...

    @abstractmethod
    async def get_profile(self, access_token: str) -> Profile: ...

    @abstractmethod
    async def list_divisions(self, auth: AuthContext) -> list[Division]: ...

    @abstractmethod
    async def list_inventory(self, auth: AuthContext) -> list[InventoryItem]: ...

    @abstractmethod
    async def list_requests(self, auth: AuthContext) -> list[InventoryRequest]: ...

    @abstractmethod
    async def list_activity_logs(self, auth: AuthContext, limit: int = 20) -> list[ActivityLog]: ...

    @abstractmethod
    async def insert_activity_log(self, auth: AuthContext, entry: ActivityLogCreate) -> ActivityLog: ...

    async def aclose(self) -> None:
        """Release pooled connections; adapters without any keep the default."""

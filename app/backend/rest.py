"""Adapter for the hosted backend-as-a-service.

Auth goes through the GoTrue-style ``/auth/v1`` endpoints and rows through the
PostgREST-style ``/rest/v1`` endpoints. Every row request carries the caller's
access token, so the backend's row-level policies decide which divisions are
visible; nothing here filters by division.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config import AppSettings, settings as default_settings
from ..core.errors import AuthenticationError, BackendError
from ..schemas.auth import AuthContext, AuthSession
from ..schemas.records import (
    ActivityLog,
    ActivityLogCreate,
    Division,
    InventoryItem,
    InventoryRequest,
    Profile,
    Table,
)
from .base import INVALID_CREDENTIALS, BackendClient

logger = logging.getLogger(__name__)

INVENTORY_SELECT = "*,profiles:added_by(name),scientist_profile:scientist_assigned(name)"
REQUESTS_SELECT = "*,profiles:scientist_id(name)"
ACTIVITY_SELECT = "*,profiles:user_id(name)"


def _embedded_name(row: Dict[str, Any], key: str) -> Optional[str]:
    embedded = row.get(key)
    if isinstance(embedded, dict):
        name = embedded.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def _inventory_from_row(row: Dict[str, Any]) -> InventoryItem:
    data = {k: v for k, v in row.items() if k not in {"profiles", "scientist_profile"}}
    data["added_by_name"] = _embedded_name(row, "profiles")
    data["scientist_name"] = _embedded_name(row, "scientist_profile")
    return InventoryItem.model_validate(data)


def _request_from_row(row: Dict[str, Any]) -> InventoryRequest:
    data = {k: v for k, v in row.items() if k != "profiles"}
    data["scientist_name"] = _embedded_name(row, "profiles")
    return InventoryRequest.model_validate(data)


def _activity_from_row(row: Dict[str, Any]) -> ActivityLog:
    data = {k: v for k, v in row.items() if k != "profiles"}
    data["user_name"] = _embedded_name(row, "profiles")
    return ActivityLog.model_validate(data)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


def _raise_for_status(response: httpx.Response, context: str) -> None:
    if response.is_success:
        return
    message = _error_message(response)
    if response.status_code in {401, 403}:
        logger.warning("Backend rejected credentials during %s: %s", context, message)
        raise AuthenticationError(message, status_code=response.status_code)
    if response.status_code >= 500:
        logger.error("Backend error %s during %s: %s", response.status_code, context, message)
    else:
        logger.error("Backend request error %s during %s: %s", response.status_code, context, message)
    raise BackendError(f"{context} failed: {message}", status_code=response.status_code)


def _json(response: httpx.Response, context: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        # Proxies and gateways answer with HTML pages.
        logger.error("Backend sent a non-JSON body during %s (HTTP %s)", context, response.status_code)
        raise BackendError(f"{context} returned a non-JSON response") from exc


class RestBackend(BackendClient):
    name = "rest"

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or default_settings
        if not self.settings.BACKEND_URL:
            raise BackendError("BACKEND_URL is not configured")
        self._client = httpx.AsyncClient(
            base_url=self.settings.BACKEND_URL,
            timeout=httpx.Timeout(self.settings.BACKEND_TIMEOUT),
            headers={"apikey": self.settings.BACKEND_ANON_KEY},
            transport=transport,
        )

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def _send(self, method: str, url: str, context: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Backend unreachable during %s: %s", context, exc)
            raise BackendError(f"{context} failed: {exc}") from exc
        return response

    async def _select(
        self,
        auth: AuthContext,
        table: str,
        select: str,
        *,
        limit: int | None = None,
        extra: Dict[str, str] | None = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": select}
        if extra:
            params.update(extra)
        if limit is not None:
            params["limit"] = limit
        response = await self._send(
            "GET",
            f"/rest/v1/{table}",
            f"fetch {table}",
            params=params,
            headers=self._auth_headers(auth.access_token),
        )
        _raise_for_status(response, f"fetch {table}")
        rows = _json(response, f"fetch {table}")
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise BackendError(f"fetch {table} returned an unexpected payload")
        return rows

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._send(
            "POST",
            "/auth/v1/token",
            "sign in",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in {400, 401}:
            message = _error_message(response)
            logger.info("Sign-in rejected for %s: %s", email, message)
            if "invalid" in message.lower():
                raise AuthenticationError(INVALID_CREDENTIALS, status_code=response.status_code)
            raise AuthenticationError(message, status_code=response.status_code)
        _raise_for_status(response, "sign in")
        body = _json(response, "sign in")
        if not isinstance(body, dict):
            raise BackendError("sign in returned an unexpected payload")
        user = body.get("user") or {}
        try:
            return AuthSession(
                access_token=body["access_token"],
                token_type=body.get("token_type") or "bearer",
                expires_in=int(body.get("expires_in") or 3600),
                refresh_token=body.get("refresh_token"),
                user_id=str(user.get("id") or ""),
            )
        except (KeyError, ValidationError) as exc:
            raise BackendError("sign in returned an unexpected payload") from exc

    async def sign_out(self, access_token: str) -> None:
        response = await self._send(
            "POST", "/auth/v1/logout", "sign out", headers=self._auth_headers(access_token)
        )
        # An already-expired session is as signed out as it gets.
        if response.status_code in {401, 403, 404}:
            return
        _raise_for_status(response, "sign out")

    async def get_profile(self, access_token: str) -> Profile:
        response = await self._send(
            "GET", "/auth/v1/user", "load user", headers=self._auth_headers(access_token)
        )
        _raise_for_status(response, "load user")
        user = _json(response, "load user")
        user_id = user.get("id") if isinstance(user, dict) else None
        if not user_id:
            raise AuthenticationError("Session has no user")

        response = await self._send(
            "GET",
            "/rest/v1/profiles",
            "load profile",
            params={"select": "*", "id": f"eq.{user_id}"},
            headers=self._auth_headers(access_token),
        )
        _raise_for_status(response, "load profile")
        rows = _json(response, "load profile")
        if not isinstance(rows, list) or not rows:
            raise AuthenticationError("No profile exists for this account")
        try:
            return Profile.model_validate(rows[0])
        except ValidationError as exc:
            raise BackendError("profile row is malformed") from exc

    async def list_divisions(self, auth: AuthContext) -> list[Division]:
        rows = await self._select(auth, "divisions", "id,name,description", extra={"order": "id.asc"})
        return self._parse(rows, Division.model_validate, "divisions")

    async def list_inventory(self, auth: AuthContext) -> list[InventoryItem]:
        rows = await self._select(auth, Table.INVENTORY.value, INVENTORY_SELECT, extra={"order": "created_at.desc"})
        return self._parse(rows, _inventory_from_row, Table.INVENTORY.value)

    async def list_requests(self, auth: AuthContext) -> list[InventoryRequest]:
        rows = await self._select(auth, Table.REQUESTS.value, REQUESTS_SELECT, extra={"order": "created_at.desc"})
        return self._parse(rows, _request_from_row, Table.REQUESTS.value)

    async def list_activity_logs(self, auth: AuthContext, limit: int = 20) -> list[ActivityLog]:
        rows = await self._select(
            auth,
            Table.ACTIVITY_LOGS.value,
            ACTIVITY_SELECT,
            limit=limit,
            extra={"order": "created_at.desc"},
        )
        return self._parse(rows, _activity_from_row, Table.ACTIVITY_LOGS.value)

    async def insert_activity_log(self, auth: AuthContext, entry: ActivityLogCreate) -> ActivityLog:
        payload = {
            "action": entry.action,
            "details": entry.details,
            "user_id": auth.profile.id,
            "division_id": auth.profile.division_label,
        }
        response = await self._send(
            "POST",
            f"/rest/v1/{Table.ACTIVITY_LOGS.value}",
            "append activity log",
            json=payload,
            headers={**self._auth_headers(auth.access_token), "Prefer": "return=representation"},
        )
        _raise_for_status(response, "append activity log")
        rows = _json(response, "append activity log")
        row = rows[0] if isinstance(rows, list) and rows else rows
        if not isinstance(row, dict):
            raise BackendError("append activity log returned an unexpected payload")
        row.setdefault("profiles", {"name": auth.profile.name})
        return self._parse([row], _activity_from_row, Table.ACTIVITY_LOGS.value)[0]

    def _parse(self, rows: List[Dict[str, Any]], mapper, table: str) -> list:
        try:
            return [mapper(row) for row in rows]
        except ValidationError as exc:
            logger.error("Malformed %s row from backend: %s", table, exc)
            raise BackendError(f"fetch {table} returned malformed rows") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

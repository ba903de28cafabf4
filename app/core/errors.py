from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The backend collaborator failed to answer a read or write."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(BackendError):
    """Sign-in was rejected or the presented session is no longer valid."""


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    path = request.url.path
    return "text/html" in accept and not path.startswith("/api") and not path.startswith("/login")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_401_UNAUTHORIZED and _wants_html(request):
        return RedirectResponse(url=f"/login?next={request.url.path}", status_code=302)
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Custom validators put exception objects in ``ctx``.
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
    )


async def backend_exception_handler(request: Request, exc: BackendError):
    if isinstance(exc, AuthenticationError):
        if _wants_html(request):
            return RedirectResponse(url=f"/login?next={request.url.path}", status_code=302)
        return ErrorEnvelope(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="authentication_failed",
            message=exc.message,
        )
    logger.warning("backend.failed", extra={"extra_data": {"path": request.url.path, "error": exc.message}})
    return ErrorEnvelope(
        status_code=status.HTTP_502_BAD_GATEWAY,
        code="backend_error",
        message="The inventory backend is unavailable",
        details={"reason": exc.message},
    )

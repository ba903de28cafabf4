from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
division_ctx_var: ContextVar[str | None] = ContextVar("division_id", default=None)
logger = logging.getLogger("app.request")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and log one line when it completes.

    The auth dependency fills in the principal (profile id) and division so the
    completion line says who looked at which division's data.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        token = request_id_ctx_var.set(request_id)
        request.state.request_id = request_id
        request.state.principal = None
        request.state.division = None
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[self.header_name] = request_id
        extra_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        # Context vars set inside the endpoint do not leak back out here, so the
        # auth dependency mirrors them on request.state.
        if request.state.principal:
            extra_data["principal"] = request.state.principal
        if request.state.division:
            extra_data["division"] = request.state.division
        logger.info("request.completed", extra={"extra_data": extra_data})
        return response

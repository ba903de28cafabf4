from __future__ import annotations

from .request_id import RequestIdMiddleware, division_ctx_var, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
    "division_ctx_var",
]

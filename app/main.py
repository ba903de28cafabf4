"""Application factory for the division inventory dashboard.

``create_app`` wires configuration, the backend adapter, the change hub, the
per-session dashboard registry, middleware, routers and error handlers into
one FastAPI instance. Tests build their own app with an injected backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .backend import BackendClient, build_backend
from .core.config import AppSettings, get_settings
from .core.errors import (
    BackendError,
    backend_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .core.logging import configure_logging
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .routers import api_auth, api_dashboard, api_hooks, auth_ui, ui
from .services.dashboard import DashboardRegistry
from .services.realtime import ChangeHub, hub as default_hub

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    backend: BackendClient | None = None,
    hub: ChangeHub | None = None,
    seed: bool | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    hub = hub or default_hub
    backend = backend or build_backend(settings, hub)
    registry = DashboardRegistry(
        backend,
        hub,
        divisions=settings.division_ids,
        activity_limit=settings.ACTIVITY_LOG_LIMIT,
        max_idle=settings.SESSION_MAX_AGE,
    )
    should_seed = settings.SEED_DEMO_DATA if seed is None else seed

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if backend.name == "sql" and should_seed:
            from .db.seed import ensure_demo_data
            from .db.session import get_engine

            ensure_demo_data(get_engine(), settings.division_ids)
        logger.info("app.started", extra={"extra_data": {"backend": backend.name}})
        try:
            yield
        finally:
            registry.release_all()
            await backend.aclose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.hub = hub
    app.state.registry = registry

    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    # Last added runs first: request ids wrap everything, sessions sit inside.
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.APP_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.SESSION_HTTPS_ONLY,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BackendError, backend_exception_handler)

    app.include_router(auth_ui.router)
    app.include_router(ui.router)
    app.include_router(api_auth.router)
    app.include_router(api_dashboard.router)
    app.include_router(api_hooks.router)

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"ok": True, "backend": backend.name}

    Instrumentator().instrument(app).expose(app, include_in_schema=False)
    return app


configure_logging(get_settings().LOG_LEVEL)
app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)

from __future__ import annotations

from ..core.config import AppSettings
from ..services.realtime import ChangeHub
from .base import BackendClient


def build_backend(settings: AppSettings, hub: ChangeHub) -> BackendClient:
    """Pick the adapter named by ``BACKEND_MODE``."""

    if settings.BACKEND_MODE == "rest":
        from .rest import RestBackend

        return RestBackend(settings)

    from ..db.session import build_sessionmaker, get_engine
    from .sql import SqlBackend

    return SqlBackend(build_sessionmaker(get_engine()), hub=hub)


__all__ = ["BackendClient", "build_backend"]

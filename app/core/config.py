"""Environment-driven configuration for the inventory dashboard.

Every setting the service relies on lives here so anyone can answer *which*
knobs exist and *what* they control without grepping the codebase. Values are
read from the environment (or ``.env``) once and cached by ``get_settings``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DIVISIONS = ["A", "B", "C", "D", "E", "F", "G", "H"]


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Division Inventory"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "Asia/Kolkata"
    LOG_LEVEL: str = "INFO"

    # ---- Backend collaborator
    # ``rest`` talks to the hosted backend; ``sql`` is the local demo adapter.
    BACKEND_MODE: Literal["rest", "sql"] = "sql"
    BACKEND_URL: str = Field(default="", validation_alias=AliasChoices("BACKEND_URL", "SUPABASE_URL"))
    BACKEND_ANON_KEY: str = Field(
        default="", validation_alias=AliasChoices("BACKEND_ANON_KEY", "SUPABASE_ANON_KEY")
    )
    BACKEND_JWT_SECRET: str = "change-me"
    BACKEND_TIMEOUT: float = 10.0
    DB_URL: str = Field(default="sqlite:///data/inventory.db", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))
    SEED_DEMO_DATA: bool = True

    # ---- Dashboard
    # Comma separated; the order here is the order of the admin stats grid.
    DIVISIONS: str = ",".join(DEFAULT_DIVISIONS)
    ACTIVITY_LOG_LIMIT: int = 20
    WEBHOOK_SECRET: str = ""

    # ---- UI sessions
    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "inv_session"
    SESSION_MAX_AGE: int = 60 * 60 * 8
    SESSION_HTTPS_ONLY: bool = False

    HOST: str = "0.0.0.0"
    PORT: int = 8090

    @property
    def templates_dir(self) -> Path:
        return self.TEMPLATES_DIR or self.BASE_DIR / "app" / "templates"

    @property
    def static_dir(self) -> Path:
        return self.STATIC_DIR or self.BASE_DIR / "app" / "static"

    @property
    def division_ids(self) -> list[str]:
        ids = [item.strip() for item in self.DIVISIONS.split(",") if item.strip()]
        return ids or list(DEFAULT_DIVISIONS)

    @field_validator("BACKEND_URL", mode="before")
    @classmethod
    def strip_backend_url(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        if isinstance(value, str):
            return value.strip().rstrip("/")
        raise TypeError("BACKEND_URL must be a string")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.TEMPLATES_DIR is None:
        settings.TEMPLATES_DIR = settings.BASE_DIR / "app" / "templates"
    if settings.STATIC_DIR is None:
        settings.STATIC_DIR = settings.BASE_DIR / "app" / "static"
    return settings


# Importing ``settings`` anywhere gives the configured values without
# rebuilding the object each time.
settings = get_settings()

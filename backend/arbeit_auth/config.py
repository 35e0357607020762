"""
Auth service configuration using pydantic-settings.

All settings can be overridden via environment variables or a .env file.
Settings are read once at start-up and handed to ``create_app``; request
handling never consults the environment directly.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


# Project root is two levels above this file: backend/arbeit_auth/config.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

SERVICE_NAME = "Arbeit Auth API"
SERVICE_VERSION = "1.0.0"

DEFAULT_ALLOWED_ORIGINS = ["http://localhost:3000", "http://localhost:30080"]


class Settings(BaseSettings):
    """Configuration for the Arbeit authentication service."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------- JWT ----------
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_SECS: int = 1800

    # ---------- Session cookie ----------
    COOKIE_NAME: str = "accessToken"
    COOKIE_DOMAIN: Optional[str] = None
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"

    # ---------- CORS ----------
    # Comma-separated list, e.g. "https://app.example.com,https://*.example.dev"
    ALLOWED_ORIGINS: str = ""

    # ---------- Database ----------
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "arbeit"
    DB_PASSWORD: str = "arbeit"
    DB_NAME: str = "arbeit"

    @property
    def database_url(self) -> str:
        """Return ``DATABASE_URL`` or build a PostgreSQL string for psycopg2."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def cors_origins(self) -> List[str]:
        """Explicit origins from ``ALLOWED_ORIGINS`` (wildcard entries excluded)."""
        entries = [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]
        if not entries:
            return list(DEFAULT_ALLOWED_ORIGINS)
        if entries == ["*"]:
            return ["*"]
        return [o for o in entries if "*" not in o]

    @property
    def cors_origin_regex(self) -> Optional[str]:
        """
        Regex covering wildcard entries such as ``https://*.example.com``.

        CORSMiddleware doesn't support glob patterns in allow_origins, so
        those entries are folded into a single ``allow_origin_regex``.
        """
        patterns = [
            o.strip()
            for o in self.ALLOWED_ORIGINS.split(",")
            if "*" in o and o.strip() != "*"
        ]
        if not patterns:
            return None
        return "|".join(
            re.escape(p).replace(r"\*", "[^/]*") for p in patterns
        )

    @property
    def cors_allow_credentials(self) -> bool:
        """A bare ``*`` origin disables credentialed CORS."""
        return self.cors_origins != ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance (read once, reused everywhere)."""
    return Settings()

"""
Configuration
=============

Application configuration loaded from environment variables (and a .env
file, if there is one).

Environment Variables:
    STORE_BACKEND: "sqlite" (default) or "memory"
    SQLITE_PATH: Where the sqlite file lives (default: backend/readings_db.sqlite)
    MANDATORY_FIELD_POLICY: "fallback" (default) or "strict" - what to do
        when a device doesn't send co2 at all
    DEBUG_ECHO_PAYLOADS: "true" (default) to echo the sanitized body back
        when JSON can't be parsed. Turn off if bodies may carry secrets.
    HISTORY_LIMIT: Readings per partition in /data/history (default: 20)
    FRONTEND_URL: URL of the dashboard for CORS
    CORS_ORIGINS: Extra comma-separated CORS origins
    PORT: Port for `python -m ingest_api.main` (default: 3000)

Tests build Config(...) directly instead of touching the environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ingest_api.services.normalizer import MandatoryFieldPolicy
from ingest_api.services.views import DEFAULT_HISTORY_LIMIT
from ingest_api.utils.validation import validate_history_limit


# Load environment variables from .env file
load_dotenv()


DEFAULT_SQLITE_PATH = Path(__file__).parent.parent / "readings_db.sqlite"

# Dev servers we always allow
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",    # Vite dev server
    "http://localhost:3000",    # Create React App
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_list(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Config(BaseModel):
    """Runtime settings for the ingest API."""

    store_backend: str = Field(default="sqlite", description="sqlite or memory")
    sqlite_path: Path = Field(default=DEFAULT_SQLITE_PATH)
    mandatory_field_policy: MandatoryFieldPolicy = Field(default=MandatoryFieldPolicy.FALLBACK)
    debug_echo_payloads: bool = Field(default=True)
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT)
    frontend_url: str = Field(default="http://localhost:5173")
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    port: int = Field(default=3000)

    @field_validator("store_backend")
    @classmethod
    def check_store_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("sqlite", "memory"):
            raise ValueError(f"STORE_BACKEND must be 'sqlite' or 'memory', got '{value}'")
        return value

    @field_validator("history_limit")
    @classmethod
    def check_history_limit(cls, value: int) -> int:
        if not validate_history_limit(value):
            raise ValueError(f"HISTORY_LIMIT must be between 1 and 1000, got {value}")
        return value

    @property
    def allowed_origins(self) -> list[str]:
        """Frontend URL plus the configured origins, without duplicates."""
        origins = [self.frontend_url] + self.cors_origins
        return list(dict.fromkeys(origins))

    @classmethod
    def from_env(cls) -> "Config":
        """Read settings from the environment, falling back to the defaults."""
        defaults = cls()
        return cls(
            store_backend=os.getenv("STORE_BACKEND", defaults.store_backend),
            sqlite_path=os.getenv("SQLITE_PATH", str(defaults.sqlite_path)),
            mandatory_field_policy=os.getenv(
                "MANDATORY_FIELD_POLICY", defaults.mandatory_field_policy.value
            ).strip().lower(),
            debug_echo_payloads=_env_flag("DEBUG_ECHO_PAYLOADS", defaults.debug_echo_payloads),
            history_limit=int(os.getenv("HISTORY_LIMIT", str(defaults.history_limit))),
            frontend_url=os.getenv("FRONTEND_URL", defaults.frontend_url),
            cors_origins=DEFAULT_CORS_ORIGINS + _env_list("CORS_ORIGINS"),
            port=int(os.getenv("PORT", str(defaults.port))),
        )

"""
Configuration helpers for the Pawprint backend.

Exposes a Settings object that reads environment variables (database URL,
session and guest lifetimes, logging level) so that routers/services do not
fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    log_level: str
    session_ttl_seconds: int
    guest_email_domain: str
    guest_ttl_seconds: int
    guest_sweep_interval_seconds: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", ""),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        guest_email_domain=(os.getenv("GUEST_EMAIL_DOMAIN") or "pawprint.com").strip().lower(),
        guest_ttl_seconds=_int(os.getenv("GUEST_TTL_SECONDS", "86400"), 86400),
        guest_sweep_interval_seconds=_int(os.getenv("GUEST_SWEEP_INTERVAL_SECONDS", "3600"), 3600),
    )

"""
Configuration helpers for localstore.

Settings are read once from environment variables so that backends and the
storage facade never fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    echo_sql: bool
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    default_level = "DEBUG" if app_env == "dev" else "INFO"

    return Settings(
        app_env=app_env,
        database_url=(os.getenv("DATABASE_URL") or "sqlite:///localstore.db").strip(),
        echo_sql=_bool(os.getenv("LOCALSTORE_ECHO_SQL"), False),
        log_level=(os.getenv("LOCALSTORE_LOG_LEVEL") or default_level).strip().upper(),
    )

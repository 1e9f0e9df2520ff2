"""
Configuration helpers for the userstore service.

Routers, services and the CLI read settings through get_settings() instead of
fetching os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

from userstore.domain.flush_policy import FlushPolicy


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_file: str
    flush: str
    flush_on_signal: bool
    host: str
    port: int
    log_level: str
    log_format: str

    @property
    def policy(self) -> FlushPolicy:
        return FlushPolicy.parse(self.flush)


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        data_file=os.getenv("USERSTORE_DATA_FILE", "data.json"),
        flush=(os.getenv("USERSTORE_FLUSH") or "60").strip(),
        flush_on_signal=_bool(os.getenv("USERSTORE_FLUSH_ON_SIGNAL"), True),
        host=os.getenv("USERSTORE_HOST", "127.0.0.1"),
        port=_int(os.getenv("USERSTORE_PORT", "8000"), 8000),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_format=(os.getenv("LOG_FORMAT") or "text").lower(),
    )

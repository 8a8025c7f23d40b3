from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Record Sync API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:3020"]

    # Development session (StaticSessionProvider)
    session_owner_id: str | None = None

    # Connectivity probing
    connectivity_probe_endpoints: list[str] = [
        "https://www.google.com/favicon.ico",
        "https://httpbin.org/status/200",
        "https://jsonplaceholder.typicode.com/posts/1",
    ]
    connectivity_probe_timeout: float = 5.0
    connectivity_poll_interval: float = 30.0

    # Cache lifetimes in seconds — longer offline to keep serving something
    cache_ttl_online: float = 5 * 60
    cache_ttl_offline: float = 30 * 60
    cache_sweep_interval: float = 10 * 60

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0

    # Synced store behaviour
    search_include_pending: bool = True
    statistics_fields: list[str] = ["status", "type"]
    error_log_size: int = 100
    can_create: bool = True
    can_update: bool = True
    can_delete: bool = True

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_connectivity: str = "INFO"     # ConnectivityMonitor + probes
    log_level_sync: str = "INFO"             # SyncedCollectionStore, cache, retries

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()

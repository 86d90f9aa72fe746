"""Centralized application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration shared across services."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./roomsync.db",
        description="SQLAlchemy database URL. Defaults to local SQLite for development.",
    )
    run_db_migrations: bool = Field(
        default=False,
        description="Whether this service should create/update database tables on startup.",
    )
    sqlite_busy_timeout: float = Field(
        default=30.0,
        description="Seconds a SQLite connection waits for the write lock before failing.",
    )
    jwt_secret: str = Field(default="super-secret", description="JWT signing secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=60, description="Token lifetime in minutes")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    default_rate_limit: str = Field(default="60/minute", description="Global rate limiting rule")
    rate_limiting_enabled: bool = Field(default=True, description="Toggle to disable SlowAPI limits (useful in tests)")

    upload_dir: str = Field(default="./uploads", description="Directory receiving uploaded office map images")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Maximum accepted upload size in bytes")
    bootstrap_admin_label: Optional[str] = Field(
        default=None,
        description="Email pre-provisioned as admin (granted by 'system') when a service starts.",
    )

    log_dir: str = Field(default="./logs", description="Directory for per-service audit logs")
    log_level: str = Field(default="INFO", description="Level for the roomsync loggers")

    gateway_port: int = 8000
    identity_service_port: int = 8001
    resources_service_port: int = 8002
    reservations_service_port: int = 8003
    roles_service_port: int = 8004
    office_map_service_port: int = 8005


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()

"""Application settings and configuration.

This module defines all configuration options for the InfoDot interaction engine.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CacheDriver = Literal["redis", "memory", "null"]
SearchDriver = Literal["meilisearch", "database"]
BroadcastDriver = Literal["redis", "pusher", "log", "null"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="InfoDot Engine", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Bearer token decoding (authentication itself happens upstream)
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./infodot.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Transient conflict handling for toggle/accept transactions
    lock_retry_attempts: int = Field(default=3, alias="LOCK_RETRY_ATTEMPTS")
    lock_retry_backoff_seconds: float = Field(
        default=0.05,
        alias="LOCK_RETRY_BACKOFF_SECONDS",
    )

    comment_max_length: int = Field(default=1000, alias="COMMENT_MAX_LENGTH")

    # Cache
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_driver: CacheDriver = Field(default="memory", alias="CACHE_DRIVER")
    cache_default_ttl_seconds: int = Field(default=3600, alias="CACHE_DEFAULT_TTL_SECONDS")
    cache_prefix: str = Field(default="infodot", alias="CACHE_PREFIX")
    redis_socket_timeout_seconds: float = Field(
        default=0.5,
        alias="REDIS_SOCKET_TIMEOUT_SECONDS",
    )

    # Search
    search_driver: SearchDriver = Field(default="database", alias="SEARCH_DRIVER")
    search_url: str | None = Field(default=None, alias="SEARCH_URL")
    search_api_key: str | None = Field(default=None, alias="SEARCH_API_KEY")
    search_index_prefix: str = Field(default="infodot_", alias="SEARCH_INDEX_PREFIX")
    search_timeout_seconds: float = Field(default=2.0, alias="SEARCH_TIMEOUT_SECONDS")
    search_result_limit: int = Field(default=20, alias="SEARCH_RESULT_LIMIT")

    # Broadcasting
    broadcast_driver: BroadcastDriver = Field(default="log", alias="BROADCAST_DRIVER")
    broadcast_timeout_seconds: float = Field(default=1.0, alias="BROADCAST_TIMEOUT_SECONDS")
    broadcast_workers: int = Field(default=2, alias="BROADCAST_WORKERS")
    broadcast_max_pending: int = Field(default=1000, alias="BROADCAST_MAX_PENDING")
    broadcast_blocking: bool = Field(default=False, alias="BROADCAST_BLOCKING")
    broadcast_comments: bool = Field(default=False, alias="BROADCAST_COMMENTS")
    pusher_app_id: str | None = Field(default=None, alias="PUSHER_APP_ID")
    pusher_key: str | None = Field(default=None, alias="PUSHER_KEY")
    pusher_secret: str | None = Field(default=None, alias="PUSHER_SECRET")
    pusher_host: str = Field(default="https://api.pusherapp.com", alias="PUSHER_HOST")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def search_enabled(self) -> bool:
        """Return True when a primary search index is configured."""
        return self.search_driver != "database" and bool(self.search_url)


settings = Settings()

"""Application settings and configuration.

This module defines all configuration options for the Cadence federation
service. Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cadence_fed.core.constants import ACTIVITY_TTL_DAYS


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Cadence", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./cadence.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Public origin of this instance; local actor URLs live under it.
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")

    # Federation behaviour
    activity_ttl_days: int = Field(default=ACTIVITY_TTL_DAYS, alias="ACTIVITY_TTL_DAYS")
    actor_cache_ttl_seconds: int = Field(default=3600, alias="ACTOR_CACHE_TTL_SECONDS")
    federation_http_timeout_seconds: float = Field(
        default=10.0,
        alias="FEDERATION_HTTP_TIMEOUT_SECONDS",
    )
    federation_user_agent: str = Field(
        default="Cadence/0.1 (+federation)",
        alias="FEDERATION_USER_AGENT",
    )
    # Lets development setups federate with localhost and private addresses.
    federation_allow_private_hosts: bool = Field(
        default=False,
        alias="FEDERATION_ALLOW_PRIVATE_HOSTS",
    )
    default_display_color: str = Field(default="#3b82f6", alias="DEFAULT_DISPLAY_COLOR")

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
    def normalized_base_url(self) -> str:
        """Return the instance base URL without a trailing slash."""
        return self.base_url.rstrip("/")


settings = Settings()

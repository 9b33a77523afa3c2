"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"
    sql_debug: bool = False
    db_retry_attempts: int = 2
    db_retry_backoff_seconds: float = 0.5
    db_query_timeout_seconds: float = 30.0

    # Catalog cache
    catalog_cache_ttl_seconds: float = 3600.0
    catalog_preload_on_startup: bool = True

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

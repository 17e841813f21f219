#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the item
service. Both external dependencies (the relational store and the Redis cache)
are configured here, together with their connection retry budgets.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """
    Durable store configuration.

    The primary store is essential: the service does not start serving until
    a pooled connection has been verified. Retries use a fixed delay and a
    bounded number of attempts.
    """

    DATABASE_URL: str | None = Field(default=None, description="Full SQLAlchemy URL (overrides DB_* parts)")
    DB_DRIVER: str = Field(default="mysql+aiomysql", description="SQLAlchemy dialect+driver")
    DB_HOST: str = Field(default="localhost", description="Database host")
    DB_PORT: int = Field(default=3306, description="Database port")
    DB_USER: str = Field(default="root", description="Database user")
    DB_PASSWORD: str = Field(default="", description="Database password")
    DB_NAME: str = Field(default="appdb", description="Database name")

    DB_POOL_SIZE: int = Field(default=10, description="Pooled connections")
    DB_POOL_MAX_OVERFLOW: int = Field(default=0, description="Connections allowed beyond the pool size")
    DB_POOL_RECYCLE: int = Field(default=60, description="Seconds before an idle connection is recycled")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Seconds to wait for a pooled connection")

    DB_CONNECT_MAX_ATTEMPTS: int = Field(default=5, ge=1, description="Startup connection attempts")
    DB_CONNECT_RETRY_DELAY: float = Field(default=5.0, ge=0, description="Seconds between startup attempts")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def url(self) -> str:
        """Return the effective database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        credentials = self.DB_USER
        if self.DB_PASSWORD:
            credentials = f"{self.DB_USER}:{self.DB_PASSWORD}"
        return f"{self.DB_DRIVER}://{credentials}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"


class RedisSettings(BaseSettings):
    """
    Redis configuration for the optional read-through cache.

    The cache is best-effort: reconnect delays grow linearly up to a ceiling,
    and after REDIS_RECONNECT_MAX_ATTEMPTS consecutive failures the cache is
    disabled until the process restarts.
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")

    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connection timeout in seconds")

    REDIS_RECONNECT_STEP: float = Field(default=0.1, ge=0, description="Delay growth per attempt (seconds)")
    REDIS_RECONNECT_MAX_DELAY: float = Field(default=3.0, ge=0, description="Reconnect delay ceiling (seconds)")
    REDIS_RECONNECT_MAX_ATTEMPTS: int = Field(default=10, ge=1, description="Attempts before giving up")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """Cache-aside configuration."""

    CACHE_ENABLED: bool = Field(default=True, description="Connect to Redis at startup")
    CACHE_DEFAULT_TTL: int = Field(default=300, ge=1, description="Response cache TTL (5 minutes)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Item Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Build/version identifier reported by /health")

    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3000, description="API port")

    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LifecycleSettings(BaseSettings):
    """Shutdown behaviour."""

    SHUTDOWN_TIMEOUT: float = Field(default=10.0, gt=0, description="Seconds before a forced exit")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from item_service.core.config.settings import get_settings

        settings = get_settings()
        pool_size = settings.database.DB_POOL_SIZE
        ttl = settings.cache.CACHE_DEFAULT_TTL
    """

    # Database settings
    DATABASE_URL: str | None = Field(default=None, description="Full SQLAlchemy URL (overrides DB_* parts)")
    DB_DRIVER: str = Field(default="mysql+aiomysql", description="SQLAlchemy dialect+driver")
    DB_HOST: str = Field(default="localhost", description="Database host")
    DB_PORT: int = Field(default=3306, description="Database port")
    DB_USER: str = Field(default="root", description="Database user")
    DB_PASSWORD: str = Field(default="", description="Database password")
    DB_NAME: str = Field(default="appdb", description="Database name")
    DB_POOL_SIZE: int = Field(default=10, description="Pooled connections")
    DB_POOL_MAX_OVERFLOW: int = Field(default=0, description="Connections allowed beyond the pool size")
    DB_POOL_RECYCLE: int = Field(default=60, description="Seconds before an idle connection is recycled")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Seconds to wait for a pooled connection")
    DB_CONNECT_MAX_ATTEMPTS: int = Field(default=5, ge=1, description="Startup connection attempts")
    DB_CONNECT_RETRY_DELAY: float = Field(default=5.0, ge=0, description="Seconds between startup attempts")

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connection timeout in seconds")
    REDIS_RECONNECT_STEP: float = Field(default=0.1, ge=0, description="Delay growth per attempt (seconds)")
    REDIS_RECONNECT_MAX_DELAY: float = Field(default=3.0, ge=0, description="Reconnect delay ceiling (seconds)")
    REDIS_RECONNECT_MAX_ATTEMPTS: int = Field(default=10, ge=1, description="Attempts before giving up")

    # Cache settings
    CACHE_ENABLED: bool = Field(default=True, description="Connect to Redis at startup")
    CACHE_DEFAULT_TTL: int = Field(default=300, ge=1, description="Response cache TTL (5 minutes)")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Item Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Build/version identifier reported by /health")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3000, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Lifecycle settings
    SHUTDOWN_TIMEOUT: float = Field(default=10.0, gt=0, description="Seconds before a forced exit")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def database(self) -> 'DatabaseSettings':
        """Get database settings."""
        return DatabaseSettings(
            DATABASE_URL=self.DATABASE_URL,
            DB_DRIVER=self.DB_DRIVER,
            DB_HOST=self.DB_HOST,
            DB_PORT=self.DB_PORT,
            DB_USER=self.DB_USER,
            DB_PASSWORD=self.DB_PASSWORD,
            DB_NAME=self.DB_NAME,
            DB_POOL_SIZE=self.DB_POOL_SIZE,
            DB_POOL_MAX_OVERFLOW=self.DB_POOL_MAX_OVERFLOW,
            DB_POOL_RECYCLE=self.DB_POOL_RECYCLE,
            DB_POOL_TIMEOUT=self.DB_POOL_TIMEOUT,
            DB_CONNECT_MAX_ATTEMPTS=self.DB_CONNECT_MAX_ATTEMPTS,
            DB_CONNECT_RETRY_DELAY=self.DB_CONNECT_RETRY_DELAY,
        )

    @property
    def redis(self) -> 'RedisSettings':
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_RECONNECT_STEP=self.REDIS_RECONNECT_STEP,
            REDIS_RECONNECT_MAX_DELAY=self.REDIS_RECONNECT_MAX_DELAY,
            REDIS_RECONNECT_MAX_ATTEMPTS=self.REDIS_RECONNECT_MAX_ATTEMPTS,
        )

    @property
    def cache(self) -> 'CacheSettings':
        """Get cache settings."""
        return CacheSettings(
            CACHE_ENABLED=self.CACHE_ENABLED,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    @property
    def lifecycle(self) -> 'LifecycleSettings':
        """Get lifecycle settings."""
        return LifecycleSettings(SHUTDOWN_TIMEOUT=self.SHUTDOWN_TIMEOUT)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings

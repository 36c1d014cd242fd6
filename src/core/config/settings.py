# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
intervention engine. Settings are loaded from environment variables
with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.engagement.quiz_score_threshold)
    7
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_PASSWORD = "intervention_engine_password"


class DatabaseSettings(BaseSettings):
    """Database configuration for the engagement store.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        run_migrations: Apply pending schema migrations on startup.
        seed_student_id: Student created on startup if it does not exist.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        extra="ignore",
    )

    user: str = "intervention"
    password: SecretStr = SecretStr(DEFAULT_DATABASE_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "intervention_engine"
    pool_size: int = 10
    max_overflow: int = 20
    run_migrations: bool = True
    seed_student_id: str | None = None

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for the status sync backend.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr | None = None
    database: int = 0
    max_connections: int = 20

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        if self.password is None:
            return f"redis://{self.host}:{self.port}/{self.database}"
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class EngagementSettings(BaseSettings):
    """Thresholds for the daily check-in guard.

    Both comparisons are strict: a check-in passes only when the quiz
    score is greater than quiz_score_threshold and the focus time is
    greater than focus_minutes_threshold.

    Attributes:
        quiz_score_threshold: Score that must be exceeded.
        focus_minutes_threshold: Focus minutes that must be exceeded.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENGAGEMENT_",
        extra="ignore",
    )

    quiz_score_threshold: float = 7
    focus_minutes_threshold: float = 60


class InterventionSettings(BaseSettings):
    """Remedial task lifecycle configuration.

    Attributes:
        duplicate_policy: "reject" refuses a second pending intervention
            for the same student, "allow" creates it anyway.
    """

    model_config = SettingsConfigDict(
        env_prefix="INTERVENTION_",
        extra="ignore",
    )

    duplicate_policy: Literal["reject", "allow"] = "reject"


class MentorNotificationSettings(BaseSettings):
    """Mentor notification transport configuration.

    Attributes:
        webhook_url: Endpoint receiving mentor alerts. Notifications are
            skipped when unset.
        timeout_seconds: Upper bound on a single notification attempt.
        cooldown_seconds: Minimum spacing between alerts for one student.
    """

    model_config = SettingsConfigDict(
        env_prefix="MENTOR_",
        extra="ignore",
    )

    webhook_url: str | None = None
    timeout_seconds: float = 10.0
    cooldown_seconds: int = 300

    @property
    def is_configured(self) -> bool:
        """Check if a webhook destination is set."""
        return bool(self.webhook_url)


class StatusSyncSettings(BaseSettings):
    """Real-time status push configuration.

    Attributes:
        backend: "event_bus" pushes to in-process WebSocket subscribers,
            "redis" publishes through Redis pub/sub, "log" only logs.
        channel_prefix: Redis channel prefix for per-student updates.
        last_status_ttl_seconds: TTL of the cached last status in Redis.
    """

    model_config = SettingsConfigDict(
        env_prefix="STATUS_SYNC_",
        extra="ignore",
    )

    backend: Literal["log", "event_bus", "redis"] = "event_bus"
    channel_prefix: str = "student_status"
    last_status_ttl_seconds: int = 3600


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limiting is applied.
        requests_per_minute: Maximum requests per minute per client.
        storage_uri: slowapi storage backend, e.g. "memory://" or a redis URL.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    requests_per_minute: int = 60
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:8081"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1
    reload: bool = False


class ClientSettings(BaseSettings):
    """Focus monitor client configuration.

    Attributes:
        api_url: Base URL of the engagement API, including /api/v1.
        ws_url: Status stream WebSocket URL.
        student_id: Identity the client reports as.
        poll_interval_seconds: Status polling period when push is down.
        request_timeout_seconds: HTTP request timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLIENT_",
        extra="ignore",
    )

    api_url: str = "http://localhost:3000/api/v1"
    ws_url: str = "ws://localhost:3000/api/v1/status/stream"
    student_id: str = "student-1"
    poll_interval_seconds: float = 15.0
    request_timeout_seconds: float = 10.0


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        redis: Redis settings.
        engagement: Check-in threshold settings.
        intervention: Intervention lifecycle settings.
        mentor: Mentor notification settings.
        status_sync: Status push settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        api: API server settings.
        client: Focus monitor client settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    engagement: EngagementSettings = Field(default_factory=EngagementSettings)
    intervention: InterventionSettings = Field(default_factory=InterventionSettings)
    mentor: MentorNotificationSettings = Field(default_factory=MentorNotificationSettings)
    status_sync: StatusSyncSettings = Field(default_factory=StatusSyncSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)
    client: ClientSettings = Field(default_factory=ClientSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.database.password.get_secret_value() == DEFAULT_DATABASE_PASSWORD:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DATABASE_PASSWORD environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()

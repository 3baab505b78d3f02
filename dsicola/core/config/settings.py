# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for DSICOLA.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Academic and financial defaults defined here are used whenever an
institution has not configured its own values.

Example:
    >>> from dsicola.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.academic.minimum_passing_grade)
    10.0
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration.

    All institutions share one database; rows are isolated by the
    ``instituicao_id`` column.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "dsicola"
    password: SecretStr = SecretStr("dsicola_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "dsicola"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for Alembic migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration, used as rate limit storage.

    Attributes:
        host: Redis host address.
        port: Redis port number.
        password: Optional Redis password.
        db: Redis database index.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr | None = None
    db: int = 0

    @property
    def url(self) -> str:
        """Build the Redis URL from components."""
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Access token expiration time.
        refresh_token_expire_days: Refresh token expiration time.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=60,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(
        default=7,
        validation_alias="REFRESH_TOKEN_EXPIRE_DAYS",
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limiting is applied.
        requests_per_minute: Maximum requests per minute per client.
        login_per_minute: Maximum login attempts per minute per IP.
        use_redis: Store counters in Redis instead of process memory.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    requests_per_minute: int = 120
    login_per_minute: int = 10
    use_redis: bool = False


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

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class TenancySettings(BaseSettings):
    """Tenant resolution configuration.

    Attributes:
        base_domain: Platform base domain; ``<subdominio>.<base_domain>``
            resolves to an institution.
        central_subdomains: Subdomains that belong to the central portal.
        header_name: Header carrying an explicit tenant code.
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        extra="ignore",
    )

    base_domain: str = "dsicola.com"
    central_subdomains: list[str] = ["www", "app", "admin", "api"]
    header_name: str = "X-Tenant-Code"


class AcademicSettings(BaseSettings):
    """Default academic rules.

    Attributes:
        minimum_passing_grade: Minimum final grade (0-20 scale) to pass.
        resit_threshold: Minimum partial average allowing a resit exam.
        minimum_attendance_percent: Minimum attendance to be REGULAR.
        semesters_per_year: Semesters per academic year (higher education).
        max_grade: Upper bound of the grading scale.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACADEMIC_",
        extra="ignore",
    )

    minimum_passing_grade: float = 10.0
    resit_threshold: float = 7.0
    minimum_attendance_percent: float = 75.0
    semesters_per_year: int = 2
    max_grade: float = 20.0


class FinanceSettings(BaseSettings):
    """Default tuition late-fee rules.

    Attributes:
        fine_percent: One-off fine applied to overdue tuition.
        daily_interest_percent: Interest applied per day late.
        grace_days: Days after the due date without charges.
        loan_days: Default library loan duration.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        extra="ignore",
    )

    fine_percent: Decimal = Decimal("2.00")
    daily_interest_percent: Decimal = Decimal("0.033")
    grace_days: int = 5
    loan_days: int = 14


class SecuritySettings(BaseSettings):
    """Account security policy.

    Attributes:
        max_login_attempts: Failed logins before the account is locked.
        lockout_minutes: Lock duration after too many failures.
        admin_password_max_age_days: Password age forcing a change for admins.
    """

    model_config = SettingsConfigDict(
        env_prefix="SECURITY_",
        extra="ignore",
    )

    max_login_attempts: int = 5
    lockout_minutes: int = 5
    admin_password_max_age_days: int = 90


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
    port: int = 8000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        redis: Redis settings.
        jwt: JWT authentication settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        tenancy: Tenant resolution settings.
        academic: Default academic rules.
        finance: Default financial rules.
        security: Account security policy.
        api: API server settings.
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
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    tenancy: TenancySettings = Field(default_factory=TenancySettings)
    academic: AcademicSettings = Field(default_factory=AcademicSettings)
    finance: FinanceSettings = Field(default_factory=FinanceSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
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

    @property
    def rate_limit_storage_uri(self) -> str:
        """Storage backend URI for the rate limiter."""
        if self.rate_limit.use_redis:
            return self.redis.url
        return "memory://"


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

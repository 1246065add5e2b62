"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from urllib.parse import unquote, urlparse

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq and job locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/placement_rewards.log"

    # Business calendar
    business_utc_offset_hours: int = Field(
        default=8,
        ge=-12,
        le=14,
        description="Fixed UTC offset of the platform business day (hours)"
    )

    # Traversal bounds
    max_placement_depth: int = Field(
        default=1000,
        gt=0,
        description="Maximum hops of a placement stop-cascade before the chain is treated as malformed"
    )
    max_referral_depth: int = Field(
        default=8,
        ge=1,
        le=8,
        description="Referral levels paid by the daily location commission pass"
    )

    # Jobs
    job_lock_timeout_seconds: int = Field(
        default=600,
        gt=0,
        description="Distributed lock TTL for distribution jobs in seconds, renewed every third of it while a pass runs"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )

            parsed = urlparse(self.database_url)
            if parsed.password:
                password = unquote(parsed.password).lower()
                username = unquote(parsed.username or "").lower()
                if password in {"password", "changeme", "admin", "root"}:
                    logger.warning(
                        f'DATABASE_URL uses insecure password "{password}". '
                        "Please change it in .env file for production security."
                    )
                elif username and password == username:
                    logger.warning(
                        "DATABASE_URL password is the same as username. "
                        "Please change it in .env file for production security."
                    )

        return self


settings = Settings()

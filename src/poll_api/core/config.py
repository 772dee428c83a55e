"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy connection string (postgresql+asyncpg or sqlite+aiosqlite)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # JWT
    jwt_secret_key: str = Field(min_length=32, description="Secret key for signing JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=7 * 24 * 60,
        description="Access token expiration in minutes",
        gt=0,
    )

    # Admin surface
    admin_code: str | None = Field(
        default=None,
        description="Shared secret expected in the X-Admin-Code header (admin endpoints are disabled when unset)",
    )

    # Registration
    allowed_email_domain: str | None = Field(
        default=None,
        description="School email domain; when set, registration requires first.last@<domain>",
    )
    password_min_length: int = Field(
        default=4,
        description="Minimum password length for registration and reset",
        gt=0,
    )
    verification_code_length: int = Field(
        default=6,
        description="Number of digits in verification and reset codes",
        ge=4,
        le=10,
    )

    @field_validator("allowed_email_domain")
    @classmethod
    def normalize_email_domain(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().lstrip("@").lower()

    # SMTP notifier
    smtp_host: str | None = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port", gt=0)
    smtp_username: str | None = Field(default=None, description="SMTP login user")
    smtp_password: str | None = Field(default=None, description="SMTP login password")
    smtp_use_tls: bool = Field(default=True, description="Upgrade the SMTP connection with STARTTLS")
    smtp_from_address: str = Field(default="noreply@localhost", description="Sender address for outgoing mail")
    smtp_from_name: str = Field(default="Poll API", description="Sender display name for outgoing mail")
    smtp_timeout: float = Field(default=15.0, description="SMTP socket timeout in seconds", gt=0)

    @property
    def smtp_configured(self) -> bool:
        """Whether enough SMTP settings are present to send real mail."""
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_prefix: str = Field(
        default="/api",
        description="API route prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]

"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    app_name: str = Field(
        default="Omyra Project Nexus",
        description="Product name rendered into email templates",
    )
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Base URL of the web client, used to build links in emails",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:8080"],
        description="Origins allowed to open HTTP and websocket connections",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone or UTC offset used for timestamps",
    )

    database_url: str = Field(
        default="sqlite:///./notifyhub.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )

    email_provider: Literal["smtp", "sendgrid", "none"] = Field(
        default="smtp",
        description="Mail transport used to deliver outgoing email",
    )
    email_from: str = Field(
        default="noreply@omyra-project.com",
        description="Default sender address for outgoing email",
        min_length=3,
    )
    email_host: str = Field(default="smtp.gmail.com", description="SMTP server host")
    email_port: int = Field(default=587, description="SMTP server port", gt=0)
    email_secure: bool = Field(
        default=False,
        description="Use implicit TLS (port 465 style) instead of STARTTLS",
    )
    email_user: str | None = Field(default=None, description="SMTP username")
    email_password: str | None = Field(default=None, description="SMTP password")
    email_timeout_seconds: float = Field(
        default=30.0, description="SMTP connect and command timeout", gt=0
    )
    email_queue_interval_seconds: float = Field(
        default=1.0,
        description="Pause between messages when draining the email send queue",
        ge=0,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )

    notification_retention_days: int = Field(
        default=30,
        description="Days a notification is kept before the cleanup sweep removes it",
        gt=0,
    )
    notification_cleanup_interval_seconds: float = Field(
        default=3600.0,
        description="Seconds between two runs of the notification cleanup sweep",
        gt=0,
    )
    notification_summary_size: int = Field(
        default=5,
        description="Number of unread notifications included in summary events",
        gt=0,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        if self.email_provider == "sendgrid" and not self.sendgrid_api_key:
            raise ValueError("EMAIL_PROVIDER=sendgrid requires SENDGRID_API_KEY")
        if "@" not in self.email_from:
            raise ValueError("EMAIL_FROM must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]

"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from check_engine.models.severity import Severity

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with PIPECHECK_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="PIPECHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///pipecheck.db"
    db_name: str | None = None
    db_host: str | None = None
    statement_timeout_ms: int = 30000

    # Mail
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: str | None = None
    smtp_password: SecretStr | None = None
    smtp_starttls: bool = False
    smtp_timeout_seconds: float = 30.0
    sender_email: str = "pipecheck@localhost"
    sender_name: str = "pipecheck"

    # Logging
    log_level: Severity = Severity.INFO
    structured_logging: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, v: object) -> Severity:
        return Severity.coerce(v)

    def resolved_db_name(self) -> str:
        """``db_name`` when set, else the database component of the URL."""
        if self.db_name:
            return self.db_name
        try:
            return make_url(self.database_url).database or ""
        except ArgumentError:
            return ""

    def resolved_db_host(self) -> str:
        """``db_host`` when set, else the host component of the URL."""
        if self.db_host:
            return self.db_host
        try:
            return make_url(self.database_url).host or "localhost"
        except ArgumentError:
            return "localhost"

    def is_smtp_authenticated(self) -> bool:
        return bool(self.smtp_username)


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]
    logger.debug("Loaded settings (log level %s)", settings.log_level.value)
    return settings

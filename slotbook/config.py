"""Configuration module for slotbook."""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# Sessions live for 30 days from issuance
SESSION_MAX_AGE_SECONDS = 30 * 24 * 60 * 60


def require(value: Optional[str], name: str) -> str:
    """Return a configured value or fail with the name of the missing variable."""
    if not value:
        raise ConfigurationError(f"Missing {name}")
    return value


@dataclass
class DatabaseConfig:
    """Relational store settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./data/slotbook.db"))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true")


@dataclass
class SessionConfig:
    """Signed session token settings."""
    secret: Optional[str] = field(default_factory=lambda: os.getenv("SESSION_SECRET"))
    base_url: Optional[str] = field(default_factory=lambda: os.getenv("SESSION_BASE_URL"))
    # Fixed lifetime, not read from the environment
    max_age_seconds: int = SESSION_MAX_AGE_SECONDS


@dataclass
class TwilioConfig:
    """Twilio Verify credentials."""
    account_sid: Optional[str] = field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID"))
    auth_token: Optional[str] = field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN"))
    verify_service_sid: Optional[str] = field(default_factory=lambda: os.getenv("TWILIO_VERIFY_SERVICE_SID"))


@dataclass
class SetupConfig:
    """First-login setup settings."""
    admin_password: Optional[str] = field(default_factory=lambda: os.getenv("ADMIN_SETUP_PASSWORD"))


@dataclass
class RateLimitConfig:
    """Auth endpoint throttling."""
    redis_url: Optional[str] = field(default_factory=lambda: os.getenv("RATE_LIMIT_REDIS_URL"))
    auth_limit: int = field(default_factory=lambda: int(os.getenv("AUTH_RATE_LIMIT", "10")))
    auth_window_seconds: int = field(default_factory=lambda: int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "900")))


@dataclass
class Config:
    """Main configuration container."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    twilio: TwilioConfig = field(default_factory=TwilioConfig)
    setup: SetupConfig = field(default_factory=SetupConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    # "twilio" in production, "static" for local development without SMS
    verify_backend: str = field(default_factory=lambda: os.getenv("VERIFY_BACKEND", "twilio"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")


def load_config() -> Config:
    """Load configuration from environment variables."""
    return Config()

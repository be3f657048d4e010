"""
Configuration management for the pilot logbook backend.

Loads settings from environment variables (and a local .env file) with
sensible defaults. All configuration is centralized here to avoid magic
strings scattered throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_email_list(value: str) -> Tuple[str, ...]:
    """Parse 'a@x.com, b@y.com' into a tuple of lowercase emails."""
    if not value:
        return ()
    return tuple(
        part.strip().lower()
        for part in value.split(',')
        if part.strip()
    )


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///pilotlog.db')

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class AuthConfig:
    """Token signing and account settings."""
    secret_key: str = os.getenv('JWT_SECRET', 'your-secret-key-change-this-in-production')
    token_max_age_days: int = int(os.getenv('TOKEN_MAX_AGE_DAYS', '7'))
    admin_emails: Tuple[str, ...] = _parse_email_list(
        os.getenv('ADMIN_EMAILS', 'admin@company.com')
    )
    min_password_length: int = 6

    @property
    def token_max_age_seconds(self) -> int:
        return self.token_max_age_days * 24 * 3600

    def is_admin_email(self, email: str) -> bool:
        return (email or '').strip().lower() in self.admin_emails


@dataclass(frozen=True)
class AviationStackConfig:
    """AviationStack API configuration for flight lookups."""
    api_key: str = os.getenv('API_KEY') or os.getenv('AVIATIONSTACK_API_KEY') or ''
    base_url: str = os.getenv('AVIATIONSTACK_BASE_URL', 'http://api.aviationstack.com/v1')
    timeout_seconds: int = 10
    max_requests_per_day: int = 90  # Leave buffer from the 100/month free tier

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class UploadConfig:
    """Schedule upload settings."""
    max_content_length: int = 5 * 1024 * 1024  # 5MB


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig
    auth: AuthConfig
    aviationstack: AviationStackConfig
    uploads: UploadConfig

    # Flask settings
    secret_key: str
    debug: bool
    port: int


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    auth = AuthConfig()
    return AppConfig(
        database=DatabaseConfig(),
        auth=auth,
        aviationstack=AviationStackConfig(),
        uploads=UploadConfig(),
        secret_key=os.getenv('SECRET_KEY', auth.secret_key),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        port=int(os.getenv('PORT', '5000')),
    )


# Singleton instance
config = load_config()

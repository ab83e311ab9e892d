"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for every field except
``secret_key``: token signing has no fallback value, and
``Settings.validate`` refuses to start the application without it.
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Event Planner API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    # Optional file that receives only reminder notifications.
    reminder_log_file: str = os.getenv("REMINDER_LOG_FILE", "")

    # Required.  Used to sign session tokens.
    secret_key: str = os.getenv("SECRET_KEY", "")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # PBKDF2 work factor for new password hashes.  Existing hashes keep
    # the iteration count they were created with.
    password_hash_iterations: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "100000"))

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "event_planner.db")

    # Prefix for all routes; empty mounts them at the root (``/events``).
    api_prefix: str = os.getenv("API_PREFIX", "")

    reminders_enabled: bool = _env_flag("REMINDERS_ENABLED", "true")
    reminder_poll_seconds: float = float(os.getenv("REMINDER_POLL_SECONDS", "5"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if the settings cannot run the app."""
        if not self.secret_key:
            raise ConfigurationError("SECRET_KEY must be set")
        if self.access_token_expire_minutes <= 0:
            raise ConfigurationError("ACCESS_TOKEN_EXPIRE_MINUTES must be positive")
        if self.password_hash_iterations <= 0:
            raise ConfigurationError("PASSWORD_HASH_ITERATIONS must be positive")
        if self.reminder_poll_seconds <= 0:
            raise ConfigurationError("REMINDER_POLL_SECONDS must be positive")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before this module is imported.
settings = Settings()

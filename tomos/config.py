"""
Runtime configuration for the release calendar.

Settings are read from the environment once, when this module is first
imported. The Supabase endpoint and anonymous key are required: a
missing value is reported immediately instead of surfacing later as an
obscure connection failure. Test runs (``ENVIRONMENT=test``) skip that
check so the query layer can be exercised against a fake backend.
"""

import os
from enum import Enum


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


class Environment(str, Enum):
    """Application environment"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TEST = "test"


def _get_environment() -> Environment:
    env_value = os.getenv("ENVIRONMENT", Environment.DEVELOPMENT.value)
    try:
        return Environment(env_value.lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid ENVIRONMENT value: '{env_value}'. "
            "Must be 'production', 'development', or 'test'."
        )


class Settings:
    """Environment-backed settings for the query service and its API."""

    def __init__(self) -> None:
        self.ENVIRONMENT: Environment = _get_environment()

        # Supabase project (required outside of tests)
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
        self.SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")

        # Label shown for licensing records whose publisher has no name yet
        self.PUBLISHER_PLACEHOLDER: str = os.getenv(
            "PUBLISHER_PLACEHOLDER", "Actualizando…"
        )

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def validate_required(settings: Settings) -> None:
    """Fail fast when the Supabase endpoint or key is unset."""
    if settings.ENVIRONMENT == Environment.TEST:
        return

    required_fields = ["SUPABASE_URL", "SUPABASE_ANON_KEY"]
    missing = [name for name in required_fields if not getattr(settings, name)]
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing)
        )


settings = Settings()
validate_required(settings)

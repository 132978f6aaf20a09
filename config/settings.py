"""
Configuration management for the sticky session persistence service.

This module provides centralized configuration loading and validation using Pydantic settings.
Connection parameters and credentials are loaded from environment variables or .env files
once at process start; they are not hot-reloaded.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    The base .env file is loaded first, then the environment-specific file
    overrides it.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    env_specific_file = env_file_map.get(environment, ".env.development")

    return (".env", env_specific_file)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Session persistence is off unless ENABLE_SESSION_PERSISTENCE is set.
    The Redis address is taken from REDIS_URL when present, otherwise it is
    assembled from REDIS_HOST, REDIS_PORT and REDIS_DB.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Session Persistence Configuration
    enable_session_persistence: bool = Field(
        default=False,
        description="Master switch for persisting browser session state to Redis"
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL; takes precedence over host/port/db"
    )
    redis_host: str = Field(
        default="localhost",
        description="Redis host used when redis_url is not set"
    )
    redis_port: int = Field(
        default=6379,
        ge=1,
        le=65535,
        description="Redis port used when redis_url is not set"
    )
    redis_db: int = Field(
        default=0,
        ge=0,
        description="Logical Redis database index used when redis_url is not set"
    )
    redis_password: Optional[str] = Field(
        default=None,
        description="Optional Redis password"
    )

    # Connection Supervision
    redis_max_reconnect_attempts: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Reconnect attempts before persistence is given up for the process"
    )
    redis_reconnect_max_delay_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Ceiling for the reconnect backoff delay"
    )
    redis_health_check_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval between connection liveness pings"
    )
    redis_socket_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a single Redis round trip"
    )
    redis_shutdown_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound on closing the Redis connection at shutdown"
    )

    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that redis_url, when given, is a usable Redis URL."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must start with redis://, rediss:// or unix://")

        parts = urlsplit(v)
        try:
            parts.port
        except ValueError as e:
            raise ValueError(f"redis_url has an invalid port: {e}") from e
        if parts.scheme != "unix":
            db = parts.path.strip("/")
            if db and not db.isdigit():
                raise ValueError("redis_url database must be a non-negative integer")
        return v

    @field_validator("redis_host")
    @classmethod
    def validate_redis_host(cls, v: str) -> str:
        """Validate that redis_host is not empty."""
        if not v or not v.strip():
            raise ValueError("redis_host cannot be empty")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    def redis_connection_url(self) -> str:
        """
        Resolve the effective Redis URL.

        Returns:
            redis_url if configured, otherwise redis://<host>:<port>/<db>.
        """
        if self.redis_url:
            return self.redis_url
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    Detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the matching environment-specific .env file.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()]

    # pydantic ignores missing files, so fall back to the full tuple
    if not existing_env_files:
        existing_env_files = list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                error_type = error.get('type', '')
                error_msg = error.get('msg', str(error))

                if error_type == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error_msg

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None

"""
Configuration management for the session service.

This module provides centralized configuration loading and validation using Pydantic settings.
Values are loaded from environment variables or .env files.

- The ENVIRONMENT variable selects an environment-specific .env file
- Startup fails with a descriptive error listing missing or invalid values
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


# One day and ten days, in milliseconds
DEFAULT_SESSION_REFRESH_MS = 24 * 60 * 60 * 1000
DEFAULT_SESSION_LIFETIME_MS = 10 * DEFAULT_SESSION_REFRESH_MS


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
        # If invalid value, default to development
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.
    
    Files are loaded in order, with later files overriding earlier ones.
    The base .env file is loaded first, then the environment-specific file.
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
    
    Every field has a default suitable for local development; production
    deployments are expected to configure the Redis database and secure
    cookies. The ENVIRONMENT variable determines which .env file to load.
    """
    
    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )
    
    # Key-value database configuration
    kv_store_type: str = Field(
        default="memory",
        description="Key-value database type: 'memory' or 'redis'"
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for session records"
    )
    
    # Session configuration
    session_refresh_ms: Optional[int] = Field(
        default=DEFAULT_SESSION_REFRESH_MS,
        ge=0,
        description=(
            "Minimum change in expiration (ms) before a touched session is "
            "written back to the database. Empty disables touch writes."
        )
    )
    session_lifetime_ms: Optional[int] = Field(
        default=DEFAULT_SESSION_LIFETIME_MS,
        gt=0,
        description="Session cookie lifetime in ms. Empty for browser-session cookies."
    )
    session_cookie_name: str = Field(
        default="sessionid",
        description="Name of the session cookie"
    )
    session_cookie_secure: bool = Field(
        default=False,
        description="Send the session cookie over HTTPS only"
    )
    session_cookie_same_site: str = Field(
        default="lax",
        description="SameSite attribute of the session cookie: lax, strict or none"
    )
    session_rolling: bool = Field(
        default=True,
        description="Refresh the session expiration on every request"
    )
    
    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    service_name: str = Field(
        default="session-service",
        description="Service name reported in logs and health checks"
    )
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    @field_validator("session_refresh_ms", "session_lifetime_ms", mode="before")
    @classmethod
    def empty_duration_is_none(cls, v):
        """Treat an empty or 'none' value as a disabled duration."""
        if isinstance(v, str) and v.strip().lower() in {"", "none", "null"}:
            return None
        return v
    
    @field_validator("kv_store_type")
    @classmethod
    def validate_kv_store_type(cls, v: str) -> str:
        """Validate that kv_store_type is either 'memory' or 'redis'."""
        v = v.strip().lower()
        if v not in {"memory", "redis"}:
            raise ValueError("kv_store_type must be 'memory' or 'redis'")
        return v
    
    @field_validator("session_cookie_name")
    @classmethod
    def validate_session_cookie_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("session_cookie_name cannot be empty")
        if any(c in v for c in " ;,=\t"):
            raise ValueError("session_cookie_name contains characters not allowed in a cookie name")
        return v
    
    @field_validator("session_cookie_same_site")
    @classmethod
    def validate_session_cookie_same_site(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"lax", "strict", "none"}:
            raise ValueError("session_cookie_same_site must be 'lax', 'strict' or 'none'")
        return v
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v
    
    @model_validator(mode="after")
    def validate_kv_store_config(self) -> "Settings":
        """Validate that a Redis URL is provided where Redis is selected."""
        if self.kv_store_type == "redis" and not self.redis_url:
            # In development, redis_url may be filled in later by the operator
            if self.environment != Environment.DEVELOPMENT:
                raise ValueError(
                    "redis_url is required when kv_store_type is 'redis' "
                    "in non-development environments"
                )
        return self


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
    
    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.
    
    Returns:
        Settings: Validated settings for the specified environment.
        
    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()
    
    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()] or list(env_files)
    
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
        
        # Extract field-level errors from Pydantic ValidationError
        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', [])) or "settings"
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
        ConfigurationError: If settings are missing or invalid.
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


def validate_startup(settings: Optional[Settings] = None) -> None:
    """
    Validate settings combinations at application startup.
    
    Args:
        settings: Settings to validate. Defaults to get_settings().
    
    Raises:
        ConfigurationError: If any settings combination is invalid.
    """
    settings = settings or get_settings()
    
    validation_errors = {}
    
    # Browsers reject SameSite=None cookies that are not Secure
    if settings.session_cookie_same_site == "none" and not settings.session_cookie_secure:
        validation_errors["session_cookie_same_site"] = (
            "SameSite=None requires session_cookie_secure to be enabled"
        )
    
    if settings.environment == Environment.PRODUCTION:
        if not settings.session_cookie_secure:
            validation_errors["session_cookie_secure"] = (
                "Production environment requires secure session cookies"
            )
        if settings.kv_store_type == "memory":
            validation_errors["kv_store_type"] = (
                "Production environment requires a shared key-value database (redis)"
            )
    
    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )

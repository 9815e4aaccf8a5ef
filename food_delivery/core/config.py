"""
Food Delivery Configuration

Every tunable (store URL, token secret, hashing cost, delivery ETA, cart
policy) comes from the environment or a .env file via Pydantic Settings.

Modes:
    - DEVELOPMENT: Local SQLite store, default secrets tolerated
    - STAGING: Pre-production, secrets expected to be overridden
    - PRODUCTION: Live environment, secrets must be overridden

Usage:
    from food_delivery.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Relaxed checks
    else:
        # Enforce production config

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWT_SECRET = "your-super-secret-jwt-key"


class EnvironmentMode(str, Enum):
    """
    Deployment environments the server knows about.

    Attributes:
        DEVELOPMENT: Local development and testing
        PRODUCTION: Live environment
        STAGING: Pre-production environment
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Server, store, auth and business settings.

    Each field maps to the upper-case environment variable of the same name.
    Secrets (JWT_SECRET, DEFAULT_ADMIN_PASSWORD) should NEVER be committed
    to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server
        api_prefix: Path prefix for all resource routers

        # Database
        database_url: SQLAlchemy async connection string

        # Authentication
        jwt_secret: HMAC secret for bearer tokens
        jwt_expires_minutes: Token lifetime
        bcrypt_rounds: Password hashing cost

        # Business Configuration
        estimated_delivery_minutes: Added to order time for the ETA
        cart_single_restaurant: Reject cross-restaurant cart adds eagerly
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Food Delivery Platform",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=3000,
        description="API server port"
    )
    api_prefix: str = Field(
        default="/api",
        description="Path prefix for the REST resources"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./database/food_delivery.db",
        description="SQLAlchemy async database URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Secret used to sign bearer tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    jwt_expires_minutes: int = Field(
        default=60 * 24,
        description="Bearer token lifetime in minutes"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor"
    )

    # ==========================================================================
    # DEFAULT ADMIN ACCOUNT
    # ==========================================================================

    default_admin_email: str = Field(
        default="admin@fooddelivery.com",
        description="Admin account seeded at startup when absent"
    )
    default_admin_password: str = Field(
        default="admin123",
        description="Password of the seeded admin account"
    )
    default_admin_name: str = Field(
        default="Admin User",
        description="Display name of the seeded admin account"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    estimated_delivery_minutes: int = Field(
        default=40,
        description="Minutes added to the order time for the delivery ETA"
    )
    cart_single_restaurant: bool = Field(
        default=False,
        description="Reject adding items from a second restaurant to the cart"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Accept the mode case-insensitively."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Default secrets are tolerated only here."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of misconfigured keys (empty if all present)
        """
        missing = []

        if not self.is_development:
            if self.jwt_secret == DEFAULT_JWT_SECRET:
                missing.append("JWT_SECRET")
            if self.default_admin_password == "admin123":
                missing.append("DEFAULT_ADMIN_PASSWORD")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process so every component sees the
    same configuration.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(settings: Optional[Settings] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        settings: Settings to read the debug flag from (cached settings if omitted)
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = settings or get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-30s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("food_delivery")


"""
Environment-based configuration system for the study folder client.

This module provides a simple configuration system based entirely on environment variables.
A ``.env`` file at the repository root is loaded when present.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv
import structlog

logger = structlog.get_logger(__name__)

# Load environment variables from .env file
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)
    logger.info("Loaded environment variables", env_file=str(env_file))
else:
    logger.debug("No .env file found", env_file=str(env_file))


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    return value in ("true", "1", "yes", "on") if value else default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer value from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float value from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


@dataclass
class AppSettings:
    """Application settings from environment variables."""

    # Environment
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    debug: bool = field(default_factory=lambda: get_env_bool("DEBUG", True))

    # Application info (constants - not configurable via environment)
    app_name: str = "Study Folder S3"
    app_version: str = "0.1.0"

    # Storage Configuration
    storage_access_key_id: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_ACCESS_KEY_ID"))
    storage_secret_access_key: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_SECRET_ACCESS_KEY"))
    storage_bucket_name: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_BUCKET_NAME"))
    storage_endpoint_url: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_ENDPOINT_URL"))
    storage_region: str = field(default_factory=lambda: os.getenv("STORAGE_REGION", "us-east-1"))
    storage_signing_region: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_SIGNING_REGION"))
    storage_force_path_style: bool = field(default_factory=lambda: get_env_bool("STORAGE_FORCE_PATH_STYLE", False))
    storage_url_expiry: int = field(default_factory=lambda: get_env_int("STORAGE_URL_EXPIRY", 60))
    storage_request_timeout: float = field(default_factory=lambda: get_env_float("STORAGE_REQUEST_TIMEOUT", 60.0))

    # Logging Configuration
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json_format: bool = field(default_factory=lambda: get_env_bool("LOG_JSON_FORMAT", False))

    def __post_init__(self):
        """Validate configuration after initialization."""
        # Set debug based on environment if not explicitly set
        if self.environment == "development" and not os.getenv("DEBUG"):
            self.debug = True
        elif self.environment == "production" and not os.getenv("DEBUG"):
            self.debug = False

        if self.storage_url_expiry < 1:
            logger.warning("Invalid presigned URL expiry, using default", value=self.storage_url_expiry)
            self.storage_url_expiry = 60

        # Validate required settings for production
        if self.environment == "production":
            if not self.storage_access_key_id or not self.storage_secret_access_key:
                logger.warning("Storage credentials not provided for production environment")
            if not self.storage_bucket_name:
                logger.warning("Storage bucket not provided for production environment")

    def get_storage_config(self) -> dict:
        """Get storage configuration as a dictionary."""
        return {
            "access_key_id": self.storage_access_key_id,
            "secret_access_key": self.storage_secret_access_key,
            "bucket_name": self.storage_bucket_name,
            "endpoint_url": self.storage_endpoint_url,
            "region": self.storage_region,
            "signing_region": self.storage_signing_region,
            "force_path_style": self.storage_force_path_style,
            "url_expiry_seconds": self.storage_url_expiry,
            "request_timeout": self.storage_request_timeout,
        }

    def get_logging_config(self) -> dict:
        """Get logging configuration as a dictionary."""
        return {
            "level": "DEBUG" if self.debug and self.log_level.upper() == "INFO" else self.log_level.upper(),
            "format_json": self.log_json_format,
        }


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get the global application settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
        logger.info("Loaded settings", environment=_settings.environment)
    return _settings


def reload_settings() -> AppSettings:
    """Reload the global application settings."""
    global _settings
    # Force reload of environment variables
    if env_file.exists():
        load_dotenv(env_file, override=True)
    _settings = AppSettings()
    logger.info("Reloaded settings", environment=_settings.environment)
    return _settings

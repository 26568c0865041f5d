"""Configuration and settings for Chatline.

Uses Pydantic Settings for fail-fast validation on startup.
All required environment variables are validated at import time.
"""

import logging
import sys
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Raises ValidationError on startup if required variables are missing.
    """

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Firebase Configuration (required)
    # Can be either a JSON string, a file path or base64 of the credentials JSON
    firebase_credentials: str = Field(
        ..., description="Firebase service account JSON string or path to JSON file"
    )
    firebase_web_api_key: str = Field(
        ..., description="Firebase Web API key used for password sign-in"
    )
    firebase_storage_bucket: str | None = Field(
        default=None,
        description="Storage bucket name (defaults to <project_id>.appspot.com)",
    )

    # Application Settings
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # Auth REST Settings
    auth_rest_base_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Firebase Auth REST base URL",
    )
    auth_timeout_seconds: float = Field(
        default=10.0, description="Timeout for Auth REST calls in seconds"
    )

    # Status Settings
    status_ttl_hours: int = Field(
        default=24, description="How long a status stays visible in hours"
    )
    status_query_chunk_size: int = Field(
        default=30, description="Max author ids per Firestore 'in' filter"
    )

    # Upload Limits
    max_image_size_mb: int = Field(default=10, description="Max image upload in MB")

    # Session Settings
    session_ttl_hours: int = Field(
        default=720, description="Session cookie TTL in hours (720 = 30 days)"
    )

    # Rate Limiting (write endpoints only)
    rate_limit_per_minute: int = Field(
        default=60, description="Max write requests per minute per client"
    )
    rate_limit_burst: int = Field(
        default=10, description="Max write requests in any 10 second window"
    )

    @field_validator("firebase_credentials", "firebase_web_api_key")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Ensure credentials are not empty strings."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @property
    def max_image_size_bytes(self) -> int:
        """Get max image size in bytes."""
        return self.max_image_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# CORS Configuration
CORS_CONFIG: dict[str, Any] = {
    "allow_origins": [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    "allow_credentials": True,
    "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    "allow_headers": ["*"],
    "expose_headers": ["*"],
    "max_age": 600,
}

# FastAPI App Configuration
APP_CONFIG: dict[str, Any] = {
    "title": "Chatline",
    "description": (
        "Realtime chat backend on Firebase. Contacts, one-to-one chats and "
        "24-hour image statuses, synchronized per session over Server-Sent Events."
    ),
    "version": "0.1.0",
    "docs_url": "/api/docs",
    "redoc_url": "/api/redoc",
    "openapi_url": "/api/openapi.json",
    "openapi_tags": [
        {
            "name": "Health",
            "description": "Health check and service status",
        },
        {
            "name": "Auth",
            "description": "Sign up, log in and log out",
        },
        {
            "name": "Profile",
            "description": "Current user profile",
        },
        {
            "name": "Chats",
            "description": "Contacts, chat threads and messages",
        },
        {
            "name": "Statuses",
            "description": "24-hour image statuses from contacts",
        },
        {
            "name": "Events",
            "description": "Realtime session state stream",
        },
    ],
}


def get_app_config() -> dict[str, Any]:
    """Get FastAPI application configuration."""
    return APP_CONFIG.copy()


def get_cors_config() -> dict[str, Any]:
    """Get CORS middleware configuration."""
    return CORS_CONFIG.copy()

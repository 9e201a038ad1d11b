"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, object storage credentials and server options.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""

    # Application configuration
    app_name: str = "Real Estate Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # Database configuration
    database_url: str = "sqlite+aiosqlite:///./marketplace.db"

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days

    # Upload limits
    max_upload_size: int = 5 * 1024 * 1024  # 5MB per file
    max_upload_files: int = 10
    max_request_size: int = 55 * 1024 * 1024
    upload_key_prefix: str = "properties"

    # Object storage (S3) configuration; all optional
    aws_region: Optional[str] = None
    aws_s3_bucket: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_s3_endpoint_url: Optional[str] = None
    aws_s3_public_url: Optional[str] = None

    # API configuration
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:3003"]

    # Pagination defaults
    default_page_size: int = 10
    max_page_size: int = 100

    # Geo search defaults (meters)
    default_max_distance: int = 10000

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 5000

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing" or self.testing

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()

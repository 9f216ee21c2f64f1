"""
Core configuration module using Pydantic Settings.

This module defines all application settings loaded from environment variables.
All configuration must go through this Settings class - NO hardcoded values.
"""

from typing import Literal

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are loaded from .env file or environment variables.
    Settings are validated using Pydantic with type hints.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(default="User Administration Service")
    version: str = Field(default="0.1.0")
    description: str = Field(
        default="Permission-gated user administration with audit logging"
    )
    environment: Literal["development", "staging", "production"] = Field(default="development")
    debug: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    secret_key: str = Field(
        ...,
        min_length=32,
        description="Secret key for JWT signing. Must be at least 32 characters."
    )

    access_token_expire_minutes: int = Field(default=15, ge=1, le=60)

    # Argon2id parameters for salted password hashing
    argon2_time_cost: int = Field(default=2, ge=1, le=10)
    argon2_memory_cost: int = Field(default=65536, ge=8192)  # 64 MB
    argon2_parallelism: int = Field(default=4, ge=1, le=16)
    password_hash_len: int = Field(default=32, ge=16, le=64)
    password_salt_bytes: int = Field(default=16, ge=16, le=64)

    # -------------------------------------------------------------------------
    # Database Configuration
    # -------------------------------------------------------------------------
    database_url: PostgresDsn = Field(
        ...,
        description="PostgreSQL connection string with asyncpg driver"
    )

    # Connection Pool Settings
    db_pool_size: int = Field(default=5, ge=1, le=50)
    db_max_overflow: int = Field(default=10, ge=0, le=100)
    db_pool_recycle: int = Field(default=3600, ge=300)  # Seconds
    db_pool_timeout: int = Field(default=30, ge=1, le=300)  # Seconds
    db_pool_pre_ping: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(default=True)

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_default: str = Field(default="100/minute")
    rate_limit_password_change: str = Field(default="3/hour")
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="Storage backend URI for rate limit counters"
    )

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")
    log_file_enabled: bool = Field(default=True)
    log_file_path: str = Field(default="logs/app.log")
    log_file_max_bytes: int = Field(default=10485760)  # 10 MB
    log_file_backup_count: int = Field(default=5)

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------
    default_page_limit: int = Field(default=50, ge=1, le=100)
    max_page_limit: int = Field(default=100, ge=1, le=1000)

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def database_url_str(self) -> str:
        """Get database URL as string."""
        return str(self.database_url)


# Singleton instance of settings
# Import this instance throughout the application
settings = Settings()

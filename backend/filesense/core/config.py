"""
Centralized configuration management.

All application configuration is loaded and validated here.
"""
import os
import logging
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Settings field -> environment variable
ENV_VARS = {
    "openrouter_api_key": "OPENROUTER_API_KEY",
    "openrouter_base_url": "OPENROUTER_BASE_URL",
    "openrouter_model": "OPENROUTER_MODEL",
    "openrouter_referer": "OPENROUTER_REFERER",
    "app_title": "APP_TITLE",
    "upstream_timeout_seconds": "UPSTREAM_TIMEOUT_SECONDS",
    "request_timeout_seconds": "REQUEST_TIMEOUT_SECONDS",
    "rate_limit_per_minute": "RATE_LIMIT_PER_MINUTE",
    "allowed_origins": "ALLOWED_ORIGINS",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
    "max_file_size_mb": "MAX_FILE_SIZE_MB",
    "max_file_rows": "MAX_FILE_ROWS",
    "max_file_columns": "MAX_FILE_COLUMNS",
    "max_cell_size_bytes": "MAX_CELL_SIZE_BYTES",
    "default_language": "DEFAULT_LANGUAGE",
    "sample_row_count": "SAMPLE_ROW_COUNT",
}


class Settings(BaseModel):
    """Application settings with validation."""

    # Model provider (OpenRouter chat-completions API)
    openrouter_api_key: Optional[str] = Field(default=None, description="Bearer credential for the model provider")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", description="Provider API base URL")
    openrouter_model: str = Field(default="google/gemini-2.0-flash-001", description="Model identifier sent upstream")
    openrouter_referer: str = Field(default="http://localhost:3000", description="HTTP-Referer header sent upstream")
    app_title: str = Field(default="FileSense", description="X-Title header sent upstream")
    upstream_timeout_seconds: float = Field(default=60.0, gt=0, le=600, description="Timeout for the model call")

    # Request timeout
    request_timeout_seconds: int = Field(default=300, ge=1, le=3600, description="Request timeout in seconds")

    # Rate limiting
    rate_limit_per_minute: int = Field(default=10, ge=1, le=1000, description="Rate limit per minute per IP")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:3001",
        description="Comma-separated list of allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="'text' or 'json'")

    # File upload limits
    max_file_size_mb: int = Field(default=50, ge=1, le=1000, description="Maximum file size in MB")
    max_file_rows: int = Field(default=1000000, ge=1000, description="Maximum rows in uploaded file")
    max_file_columns: int = Field(default=1000, ge=10, description="Maximum columns in uploaded file")
    max_cell_size_bytes: int = Field(default=100000, ge=1000, description="Maximum cell value size in bytes")

    # Analysis
    default_language: str = Field(default="Español", description="Report language when the caller sends none")
    sample_row_count: int = Field(default=5, ge=1, le=50, description="Rows sent verbatim to the model")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got '{v}'")
        return v.lower()

    @field_validator('openrouter_api_key')
    @classmethod
    def blank_key_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def has_api_key(self) -> bool:
        return self.openrouter_api_key is not None

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment variables in ENV_VARS.

        Unset variables keep the field default; set ones are coerced and
        validated by pydantic, so RATE_LIMIT_PER_MINUTE=abc fails at startup.
        """
        values = {
            field_name: os.environ[env_name]
            for field_name, env_name in ENV_VARS.items()
            if env_name in os.environ
        }
        return cls(**values)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()

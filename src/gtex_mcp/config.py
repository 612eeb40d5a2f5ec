"""
Configuration management using Pydantic Settings.

Loads environment variables with validation and defaults. Every setting
can be overridden from the environment or a project-level .env file.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gtex_mcp.constants import (
    CHARACTER_LIMIT,
    DEFAULT_DATASET_ID,
    GTEX_API_BASE,
    GTEX_TIMEOUT_SECONDS,
    GTEX_USER_AGENT,
)

# Project root is the parent of src/
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"

load_dotenv(dotenv_path=_env_file, override=False)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings have defaults that point at the public GTEx Portal.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # GTEx Portal API
    # ========================================================================

    gtex_api_base: str = Field(
        default=GTEX_API_BASE,
        description="Base URL of the GTEx Portal REST API",
    )
    gtex_timeout_seconds: int = Field(
        default=GTEX_TIMEOUT_SECONDS,
        ge=1,
        le=300,
        description="HTTP request timeout (applied per request, never retried)",
    )
    gtex_user_agent: str = Field(
        default=GTEX_USER_AGENT,
        description="User-Agent header sent with every request",
    )
    default_dataset_id: str = Field(
        default=DEFAULT_DATASET_ID,
        description="Dataset used when a tool call does not name one",
    )

    # ========================================================================
    # MCP Server Configuration
    # ========================================================================

    mcp_server_name: str = Field(
        default="gtex_mcp",
        description="MCP server name",
    )
    character_limit: int = Field(
        default=CHARACTER_LIMIT,
        ge=1000,
        le=100000,
        description="Maximum response size in characters",
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    # ========================================================================
    # Validators
    # ========================================================================

    @field_validator("gtex_api_base")
    @classmethod
    def validate_api_base(cls, v: str) -> str:
        """Require an absolute http(s) URL without trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid GTEx API base: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of {valid_levels}"
            )
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"json", "text"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(
                f"Invalid log format: {v}. Must be 'json' or 'text'"
            )
        return v_lower

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug_mode else self.log_level


# Global settings instance
# Loaded once at import time
settings = Settings()

from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class ExportSettings(BaseSettings):
    """Runtime configuration for the dashboard export service."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3001, description="Server port")
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Origin allowed to call the API from the browser",
    )
    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted request body in bytes",
    )
    clipboard_enabled: bool = Field(
        default=True,
        description="Copy generated HTML exports to the system clipboard",
    )
    browser_headless: bool = Field(default=True, description="Run chromium headless")
    browser_timeout_ms: int = Field(
        default=15000,
        description="Timeout for loading a DOM snapshot into the browser",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DASHBOARD_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if value.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {sorted(allowed)}")
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> ExportSettings:
    return ExportSettings()

"""
Configuration module for the Health Analytics service.
Uses Pydantic BaseSettings for validation - app fails fast if config is invalid.

The reporting timezone lives here and is handed to the window resolver and the
report renderers through core.dependencies; nothing reads it as a module global.
"""
import logging
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Every field has a default so the service starts with an empty environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    health_analytics_db_dir: str = Field(default="data", description="Database directory")
    health_analytics_db_file: str = Field(default="health_analytics.db", description="Database filename")
    health_analytics_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    health_analytics_host: str = Field(default="0.0.0.0", description="API host")
    health_analytics_port: int = Field(default=8000, description="API port")
    health_analytics_reload: bool = Field(default=False, description="Enable hot reload")

    # Reporting Configuration
    health_analytics_timezone: str = Field(
        default="Asia/Jakarta",
        description="IANA timezone used for day boundaries and report timestamps",
    )
    health_analytics_pdf_compression: bool = Field(
        default=True,
        description="Compress PDF page streams",
    )

    @field_validator("health_analytics_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject unknown timezone names at startup instead of on the first request."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'") from e
        return value

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.health_analytics_db_dir) / self.health_analytics_db_file)

    @property
    def reporting_timezone(self) -> ZoneInfo:
        """Get the reporting timezone as a tzinfo object."""
        return ZoneInfo(self.health_analytics_timezone)

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.health_analytics_db_dir).mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()

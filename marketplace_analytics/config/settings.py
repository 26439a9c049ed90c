"""
Application settings and configuration management using Pydantic BaseSettings.
"""

from pathlib import Path
from typing import Dict, Any
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import Environment


class DatabaseConfig(BaseSettings):
    """Database configuration settings."""
    path: str = Field(default="marketplace.db")
    connection_timeout: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="DB_")

    @property
    def absolute_path(self) -> str:
        """Get absolute path to the records database."""
        if self.path == ":memory:":
            return self.path
        return str(Path(self.path).resolve())


class AnalyticsConfig(BaseSettings):
    """Aggregation engine tuning."""
    dashboard_preset: str = Field(default="last30days")
    enrichment_strategy: str = Field(default="batched")
    enrichment_concurrency: int = Field(default=8, ge=1, le=64)
    top_rated_limit: int = Field(default=4, ge=1)
    low_rated_limit: int = Field(default=3, ge=1)
    low_rating_threshold: float = Field(default=3.5, ge=0, le=5)
    recent_bookings_limit: int = Field(default=5, ge=1)
    popular_listings_limit: int = Field(default=6, ge=1)
    report_ranking_limit: int = Field(default=10, ge=1)
    revenue_trend_months: int = Field(default=6, ge=1, le=24)

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    @field_validator("enrichment_strategy")
    @classmethod
    def validate_enrichment_strategy(cls, v: str) -> str:
        valid = ["sequential", "batched"]
        if v.lower() not in valid:
            raise ValueError(f"Enrichment strategy must be one of: {valid}")
        return v.lower()

    @field_validator("dashboard_preset")
    @classmethod
    def validate_dashboard_preset(cls, v: str) -> str:
        # custom needs explicit bounds, so it can't drive the dashboard
        from ..utils.date_ranges import PRESETS
        key = v.lower()
        if key not in PRESETS or key == "custom":
            raise ValueError(f"Unsupported dashboard preset: {v}")
        return key


class AppConfig(BaseSettings):
    """Application configuration settings."""
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    log_level: str = Field(default="INFO")
    service_name: str = Field(default="marketplace_analytics")

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


class Settings(BaseSettings):
    """Centralized application settings manager using Pydantic BaseSettings."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        self._load_env_file()
        super().__init__(**kwargs)

    @staticmethod
    def _load_env_file() -> None:
        """Load environment variables from .env file."""
        env_file = Path(".env")
        if env_file.exists():
            from dotenv import load_dotenv
            load_dotenv(env_file)

    def get_analytics_config(self) -> Dict[str, Any]:
        """Get aggregation engine configuration as a plain mapping."""
        return self.analytics.model_dump()

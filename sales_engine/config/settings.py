"""
Sales Engine
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type safety.
Every data source is optional: an entity type without a configured source is
loaded as an empty collection.
"""

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENTITY_NAMES = (
    "merchants",
    "items",
    "invoices",
    "invoice_items",
    "transactions",
    "customers",
)


class DataSettings(BaseSettings):
    """CSV data source locations, one per entity type"""

    model_config = SettingsConfigDict(env_prefix="SALES_DATA_")

    merchants: Optional[str] = Field(default=None, description="Merchants CSV path")
    items: Optional[str] = Field(default=None, description="Items CSV path")
    invoices: Optional[str] = Field(default=None, description="Invoices CSV path")
    invoice_items: Optional[str] = Field(default=None, description="Invoice items CSV path")
    transactions: Optional[str] = Field(default=None, description="Transactions CSV path")
    customers: Optional[str] = Field(default=None, description="Customers CSV path")

    def sources(self) -> Dict[str, str]:
        """Entity name -> path for every configured source"""
        return {
            name: getattr(self, name)
            for name in ENTITY_NAMES
            if getattr(self, name)
        }


class AnalyticsSettings(BaseSettings):
    """Report defaults"""

    model_config = SettingsConfigDict(env_prefix="SALES_ANALYTICS_")

    top_n: int = Field(default=20, ge=1, description="Default size of revenue rankings")


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format value"""
        allowed = ["json", "text"]
        if v.lower() not in allowed:
            raise ValueError(f"Log format must be one of: {allowed}")
        return v.lower()


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-engine", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    data: DataSettings = Field(default_factory=DataSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()

"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "lounge_pos.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class SalesSettings(BaseSettings):
    """Sale transaction configuration."""

    model_config = SettingsConfigDict(env_prefix="SALES_")

    # Reconciliation tolerance between declared payment and cart total
    payment_tolerance: float = Field(default=0.01, ge=0)
    currency_places: int = Field(default=2, ge=0, le=6)

    # Upper bound for the atomic insert + decrement step (seconds)
    persist_timeout: float = Field(default=10.0, gt=0)

    emit_profit_updates: bool = True
    product_id_pattern: str = r"^[A-Za-z0-9_-]{1,64}$"


class NotificationSettings(BaseSettings):
    """Post-commit notification sink configuration."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    backend: Literal["log", "webhook", "none"] = "log"
    webhook_url: str | None = None
    timeout: float = Field(default=5.0, gt=0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Lounge POS"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    sales: SalesSettings = Field(default_factory=SalesSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None

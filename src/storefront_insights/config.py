"""
Configuration management for storefront insights
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOW_STOCK_THRESHOLD = 10


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront Insights"
    log_level: str = "INFO"
    log_dir: Optional[str] = None  # None = console only

    # Data locations
    data_dir: str = "data/raw"  # orders.json / products.json / categories.json
    state_dir: str = "data/state"  # persisted read-state

    # Inventory
    low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD, ge=0)

    # Reporting
    default_period: str = "12m"
    top_n: int = Field(default=5, ge=0)

    # Notifications
    recent_order_window_hours: int = Field(default=24, gt=0)
    max_recent_order_alerts: int = Field(default=10, ge=0)
    poll_interval_seconds: float = Field(default=30.0, gt=0, le=30)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

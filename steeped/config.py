"""
Settings — environment-driven configuration.

    STEEPED_API_URL=https://shop.example/api
    STEEPED_TAX_RATE=10
    STEEPED_TTL__CATEGORIES=3600
    STEEPED_LOGGING__LEVEL=DEBUG
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TTLSettings(BaseModel):
    """Freshness window per resource class, in seconds."""

    products: float = Field(default=60, gt=0, description="Paginated listings")
    product: float = Field(default=300, gt=0, description="Single product reads")
    bestsellers: float = Field(default=300, gt=0, description="Best-seller list")
    featured: float = Field(default=300, gt=0, description="Featured list")
    categories: float = Field(default=1800, gt=0, description="Category list")
    search: float = Field(default=30, gt=0, description="Search results")

    def for_namespace(self, namespace: str) -> timedelta:
        return timedelta(seconds=getattr(self, namespace))


class LoggingSettings(BaseModel):
    """Logging configuration for the `steeped` logger."""

    model_config = {"populate_by_name": True}

    level: str = Field(default="INFO", description="Logging level")
    format_string: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
        alias="format",
    )


class Settings(BaseSettings):
    """Top-level configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STEEPED_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    api_url: str = Field(default="http://localhost:5000/api", description="Storefront API base URL")
    api_token: str | None = Field(default=None, description="Bearer token sent with API calls")
    tax_rate: Decimal = Field(default=Decimal("10"), ge=0, description="Tax rate, percent of subtotal")
    ttl: TTLSettings = Field(default_factory=TTLSettings)
    cart_storage_dir: Path | None = Field(
        default=None,
        description="Directory for the persisted cart; in-memory when unset",
    )
    cart_storage_key: str = Field(default="cart", description="Storage key of the persisted cart")
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings read once from the environment."""
    return Settings()


__all__ = (
    "TTLSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
)

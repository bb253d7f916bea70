"""
Configuration module for the Order Lifecycle service.
Loads settings from environment variables (and an optional .env file).
"""

import logging
from decimal import Decimal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Shipping policy (process-wide, read once at startup)
    free_shipping_threshold: Decimal = Field(
        default=Decimal("299"),
        alias="FREE_SHIPPING_THRESHOLD",
        description="Subtotal at or above which shipping is free"
    )
    shipping_flat_fee: Decimal = Field(
        default=Decimal("50"),
        alias="SHIPPING_FLAT_FEE",
        description="Flat shipping fee charged below the free-shipping threshold"
    )
    currency_symbol: str = Field(
        default="₹",
        alias="CURRENCY_SYMBOL",
        description="Symbol prefixed to formatted amounts"
    )

    # Returns
    returns_block_on_any_existing: bool = Field(
        default=True,
        alias="RETURNS_BLOCK_ON_ANY_EXISTING",
        description="Any existing return (even rejected or cancelled) blocks a new request"
    )

    # Application Configuration
    app_host: str = Field(
        default="0.0.0.0",
        alias="APP_HOST",
        description="Host to bind the application"
    )
    app_port: int = Field(
        default=8000,
        alias="APP_PORT",
        description="Port to bind the application"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        alias="LOG_FORMAT",
        description="Format string passed to logging.basicConfig"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def configure_logging(current: "Settings") -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, current.log_level.upper(), logging.INFO),
        format=current.log_format,
    )


# Global settings instance
settings = Settings()

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from ``STOREFRONT_*`` env vars or ``.env``."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Storage
    DATA_DIR: Path = Path("data")

    # Orders & pricing
    ORDER_NUMBER_PREFIX: str = "ATW"
    TAX_RATE: Decimal = Decimal("0.08")
    CURRENCY: str = "USD"

    # Payment gateway (Stripe)
    STRIPE_API_BASE: str = "https://api.stripe.com"
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    WEBHOOK_TOLERANCE_SECONDS: int = 300
    GATEWAY_TIMEOUT_SECONDS: float = 10.0
    FRONTEND_URL: str = "http://localhost:3000"

    # Notifications (Resend); empty key means log-only
    RESEND_API_KEY: str = ""
    RESEND_API_BASE: str = "https://api.resend.com"
    EMAIL_FROM: str = "atweb <onboarding@resend.dev>"

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("TAX_RATE")
    @classmethod
    def tax_rate_is_fraction(cls, v: Decimal) -> Decimal:
        if not Decimal("0") <= v < Decimal("1"):
            raise ValueError("TAX_RATE must be a fraction, e.g. 0.08")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()

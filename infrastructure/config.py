"""
Environment configuration for the reservation engine.
Uses pydantic-settings so every value can be overridden from the
environment or a .env file.
"""
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.value_objects import Money, PricingPolicy


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=True)

    # Application
    APP_NAME: str = "Rental Reservation API"
    API_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Security
    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_FULL_NAME: str = "Admin User"
    ADMIN_EMAIL: Optional[str] = "admin@example.com"

    # Pricing (whole currency units)
    CURRENCY: str = "INR"
    RATE_PER_NIGHT: Decimal = Field(default=Decimal("25000"), ge=0)
    SECURITY_DEPOSIT: Decimal = Field(default=Decimal("5000"), ge=0)

    # Hold ledger
    HOLD_TTL_SECONDS: int = 48 * 60 * 60
    HOLD_STORE_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./holds.db"
    DATABASE_ECHO: bool = False

    # Manual UPI payments; payment info is unavailable until UPI_ID is set
    UPI_ID: Optional[str] = None
    UPI_QR_CODE_URL: Optional[str] = None

    # Bookings and customers
    TERMS_VERSION: str = "1.0"
    TERMS_EFFECTIVE_DATE: str = "2025-01-01"
    DATA_RETENTION_YEARS: int = 3
    SEED_PROPERTIES: bool = True

    # Integrations; unset URLs select the not-configured variants
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    CALENDAR_WEBHOOK_URL: Optional[str] = None
    INTEGRATION_TIMEOUT_SECONDS: float = 10.0

    @field_validator("HOLD_TTL_SECONDS")
    @classmethod
    def ttl_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("HOLD_TTL_SECONDS must be positive")
        return v

    @field_validator("HOLD_STORE_BACKEND")
    @classmethod
    def known_backend(cls, v):
        if v not in ("memory", "sqlalchemy"):
            raise ValueError("HOLD_STORE_BACKEND must be 'memory' or 'sqlalchemy'")
        return v

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(
            rate_per_night=Money(amount=self.RATE_PER_NIGHT, currency=self.CURRENCY),
            security_deposit=Money(amount=self.SECURITY_DEPOSIT, currency=self.CURRENCY)
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()

"""
inala/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, SMTP relay, business rules)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="inala_erp",
        description="MongoDB database name"
    )

    # Branding
    APP_NAME: str = Field(
        default="INALA ERP",
        description="Product name used in emails and API metadata"
    )
    APP_URL: str = Field(
        default="https://inala-erp.web.app",
        description="Public front-end URL (used for email links)"
    )

    # Business rules
    DEFAULT_CURRENCY: str = Field(
        default="ZAR",
        description="Currency used when a tenant has none configured"
    )
    VAT_RATE: float = Field(
        default=0.15,
        description="VAT applied on top of the POS cart subtotal"
    )
    DEFAULT_CREDIT_LIMIT: float = Field(
        default=1000.0,
        description="Credit limit given to customers created at the till"
    )
    DEFAULT_LOAN_INTEREST_RATE: float = Field(
        default=20.0,
        description="Flat interest percentage applied to new loans"
    )
    LOAN_APPROVALS_REQUIRED: int = Field(
        default=1,
        description="Number of approving votes before a loan application is APPROVED"
    )
    BUSINESS_CYCLE_START_DAY: int = Field(
        default=5,
        description="Day of month on which a business cycle starts"
    )
    STOKVEL_DEFAULT_TARGET: float = Field(
        default=100000.0,
        description="Fund goal used when a stokvel has no target"
    )

    # SMTP mail relay
    SMTP_HOST: Optional[str] = Field(default=None, description="SMTP relay host")
    SMTP_PORT: int = Field(default=587, description="SMTP relay port")
    SMTP_USERNAME: Optional[str] = Field(default=None, description="SMTP username")
    SMTP_PASSWORD: Optional[str] = Field(default=None, description="SMTP password")
    SMTP_FROM: str = Field(
        default="no-reply@inala.holdings",
        description="Sender address for outgoing mail"
    )
    SMTP_SECURITY: Literal["starttls", "ssl", "none"] = Field(
        default="starttls",
        description="SMTP transport security"
    )
    SUPPORT_EMAIL: str = Field(
        default="admin@inala.holdings",
        description="Contact address shown in email footers"
    )

    # Exchange rates
    EXCHANGE_RATE_API_URL: Optional[str] = Field(
        default=None,
        description="Optional JSON endpoint returning {'rates': {CODE: rate_to_zar}}"
    )
    EXCHANGE_RATE_TIMEOUT: int = Field(
        default=10,
        description="Exchange rate request timeout in seconds"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key for encryption"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("BUSINESS_CYCLE_START_DAY")
    def validate_cycle_start_day(cls, v):
        """The cycle must start on a day every month has."""
        if v < 1 or v > 28:
            raise ValueError("BUSINESS_CYCLE_START_DAY must be between 1 and 28")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def smtp_configured(self) -> bool:
        """Check if an SMTP relay has been configured."""
        return bool(self.SMTP_HOST and self.SMTP_USERNAME and self.SMTP_PASSWORD)

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    if settings.VAT_RATE < 0:
        errors.append("VAT_RATE cannot be negative")

    if settings.LOAN_APPROVALS_REQUIRED < 1:
        errors.append("LOAN_APPROVALS_REQUIRED must be at least 1")

    # Production-specific validations
    if settings.is_production:
        if not settings.smtp_configured:
            errors.append("SMTP_HOST, SMTP_USERNAME and SMTP_PASSWORD are required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True

"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, Twilio credentials, OTP policy)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


def check_message_template(template: str) -> str:
    """
    Rejects SMS templates that would fail to render or would leave the code out.

    Only {code} and {ttl} are substituted.
    """
    try:
        rendered = template.format(code="000000", ttl=300)
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid message template: {e!r}")
    if rendered == template.format(code="111111", ttl=300):
        raise ValueError("Message template must include {code}")
    return template


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
        default="phoneverify",
        description="MongoDB database name"
    )

    # Twilio SMS
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID (starts with AC)"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_PHONE_NUMBER: Optional[str] = Field(
        default=None,
        description="Sender number for verification SMS"
    )
    TWILIO_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Twilio API request timeout in seconds"
    )

    # Verification codes
    OTP_TTL_SECONDS: int = Field(
        default=300,
        description="Seconds an issued code stays redeemable"
    )
    OTP_MESSAGE_TEMPLATE: str = Field(
        default="Your verification code is: {code}. It expires in {ttl} seconds.",
        description="SMS body; {code} and {ttl} are substituted"
    )
    VERIFICATION_DEV_MODE: bool = Field(
        default=False,
        description="Skip SMS delivery and echo the code in the response"
    )
    INVALIDATE_CODE_ON_DELIVERY_FAILURE: bool = Field(
        default=False,
        description="Delete the stored code when the SMS could not be sent"
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
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("OTP_TTL_SECONDS")
    def validate_ttl(cls, v):
        """TTL must leave a redeemable window."""
        if v <= 0:
            raise ValueError("OTP_TTL_SECONDS must be positive")
        return v

    @validator("OTP_MESSAGE_TEMPLATE")
    def validate_message_template(cls, v):
        return check_message_template(v)

    @validator("VERIFICATION_DEV_MODE")
    def validate_dev_mode(cls, v, values):
        """Never echo codes from a production deployment."""
        if v and values.get("ENVIRONMENT") == "production":
            raise ValueError("VERIFICATION_DEV_MODE cannot be enabled in production")
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
    def twilio_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_ACCOUNT_SID.startswith("AC")
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_PHONE_NUMBER
        )

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

    # Production-specific validations
    if settings.is_production:
        if not settings.twilio_configured:
            errors.append(
                "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER "
                "are required in production"
            )
        if settings.VERIFICATION_DEV_MODE:
            errors.append("VERIFICATION_DEV_MODE must be disabled in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True

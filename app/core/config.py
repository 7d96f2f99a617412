"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, provider keys)
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
        description="MongoDB connection URI (replica set required for change streams)"
    )
    MONGODB_DB_NAME: str = Field(
        default="zimmah",
        description="MongoDB database name"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Secret used to sign access tokens"
    )
    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Access token signing algorithm"
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 7,
        description="Access token lifetime in minutes"
    )
    ADMIN_EMAIL: str = Field(
        default="admin@zimmah.com",
        description="Email of the account allowed to use the admin endpoints"
    )
    GOOGLE_OAUTH_CLIENT_ID: Optional[str] = Field(
        default=None,
        description="OAuth client id that Google ID tokens must be issued for"
    )

    # LLM (OpenAI-compatible endpoint)
    LLM_API_KEY: Optional[str] = Field(
        default=None,
        description="API key for the LLM provider"
    )
    LLM_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible base URL"
    )
    LLM_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Model used by every prompt flow"
    )
    LLM_TIMEOUT: float = Field(
        default=60.0,
        description="LLM request timeout in seconds"
    )

    # Email (SendGrid)
    SENDGRID_API_KEY: Optional[str] = Field(
        default=None,
        description="SendGrid API key for OTP emails"
    )
    SENDGRID_FROM_EMAIL: str = Field(
        default="no-reply@zimmah.app",
        description="Verified sender address"
    )
    SENDGRID_FROM_NAME: str = Field(
        default="Zimmah",
        description="Sender display name"
    )

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_SMS_NUMBER: Optional[str] = Field(
        default=None,
        description="Twilio sender number in E.164 format"
    )

    # OTP
    OTP_LENGTH: int = Field(
        default=6,
        description="Number of digits in a registration OTP"
    )
    OTP_EXPIRY_MINUTES: int = Field(
        default=10,
        description="Registration OTP validity in minutes"
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
    ENABLE_TRIGGERS: bool = Field(
        default=True,
        description="Run the pending_users on-create trigger inside the API process"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("OTP_LENGTH")
    def validate_otp_length(cls, v):
        if v < 4 or v > 10:
            raise ValueError("OTP_LENGTH must be between 4 and 10")
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
    def email_configured(self) -> bool:
        return bool(self.SENDGRID_API_KEY)

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_SMS_NUMBER
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
        if not settings.LLM_API_KEY:
            errors.append("LLM_API_KEY is required in production")
        if not (settings.email_configured or settings.sms_configured):
            errors.append("SENDGRID_API_KEY or TWILIO_* credentials are required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True

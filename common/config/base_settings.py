"""
Environment-driven settings shared by every HelloStore process.

Values come from the process environment or a ``.env`` file; names are
case sensitive and match the variable names one to one.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """Database, server and outbound email settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=True,
    )

    # ── Database ──────────────────────────────────────────────────
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "ecommerceDB"

    # ── Server ────────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Email (console | smtp | resend) ───────────────────────────
    EMAIL_MODE: str = "console"
    RESEND_API_KEY: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@example.com"
    SMTP_FROM_NAME: str = "HelloStore"

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def config_errors(self) -> List[str]:
        """Missing or contradictory settings, one message each."""
        errors = []
        if self.EMAIL_MODE == "smtp" and not self.SMTP_HOST:
            errors.append("SMTP_HOST is required when EMAIL_MODE is smtp")
        if self.EMAIL_MODE == "resend" and not self.RESEND_API_KEY:
            errors.append("RESEND_API_KEY is required when EMAIL_MODE is resend")
        if self.is_production() and self.EMAIL_MODE == "console":
            errors.append("EMAIL_MODE=console would drop every verification email in production")
        return errors

    def validate_required(self) -> None:
        """
        Raises:
            ValueError: Listing every entry from config_errors()
        """
        errors = self.config_errors()
        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))

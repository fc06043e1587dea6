"""
HelloStore application settings.

Extends the base settings with storefront-specific configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """HelloStore-specific settings."""

    # ==========================================================================
    # Session Settings
    # ==========================================================================
    SESSION_COOKIE_NAME: str = "hellostore_sid"

    # Idle window; every allowed request slides it forward
    SESSION_IDLE_TIMEOUT_MINUTES: int = 15

    # ==========================================================================
    # Account Settings
    # ==========================================================================
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 1
    PASSWORD_RESET_EXPIRE_HOURS: int = 1
    BCRYPT_ROUNDS: int = 12

    # ==========================================================================
    # Cloudflare Turnstile (bot check on register/login)
    # ==========================================================================
    TURNSTILE_SECRET_KEY: Optional[str] = None
    TURNSTILE_SITE_KEY: Optional[str] = None

    # ==========================================================================
    # Public URL (for email links)
    # ==========================================================================
    APP_URL: str = "http://localhost:3000"

    @property
    def human_check_enabled(self) -> bool:
        """Turnstile is enforced only when a secret key is configured."""
        return bool(self.TURNSTILE_SECRET_KEY)

    @property
    def session_idle_timeout_seconds(self) -> int:
        return self.SESSION_IDLE_TIMEOUT_MINUTES * 60


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()

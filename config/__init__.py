"""
Configuration module - Fixed constants for external services.
"""

from config.email_config import RESEND_API_URL, EMAIL_SEND_TIMEOUT, EMAIL_DEFAULTS
from config.turnstile_config import (
    TURNSTILE_VERIFY_URL,
    TURNSTILE_RESPONSE_FIELD,
    TURNSTILE_TIMEOUT,
)

__all__ = [
    "RESEND_API_URL",
    "EMAIL_SEND_TIMEOUT",
    "EMAIL_DEFAULTS",
    "TURNSTILE_VERIFY_URL",
    "TURNSTILE_RESPONSE_FIELD",
    "TURNSTILE_TIMEOUT",
]

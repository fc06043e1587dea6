"""
Auth services: sessions, tokens, bot check and the account flows.
"""

from storefront.services.auth.token_hasher import TokenHasher
from storefront.services.auth.session_store import SessionStore
from storefront.services.auth.verification_token_service import (
    IssuedToken,
    VerificationTokenService,
)
from storefront.services.auth.turnstile_verifier import TurnstileVerifier
from storefront.services.auth.auth_flow import (
    AuthFlowController,
    LoginResult,
    RegistrationResult,
    utcnow,
)

__all__ = [
    "TokenHasher",
    "SessionStore",
    "IssuedToken",
    "VerificationTokenService",
    "TurnstileVerifier",
    "AuthFlowController",
    "LoginResult",
    "RegistrationResult",
    "utcnow",
]

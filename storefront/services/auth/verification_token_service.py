"""
Time-boxed single-use tokens for email verification and password reset.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from storefront.services.auth.token_hasher import TokenHasher


@dataclass(frozen=True)
class IssuedToken:
    value: str
    expires_at: datetime


class VerificationTokenService:
    """
    Issues tokens and checks their expiry.

    Storage is the user record itself; consuming a token is the credential
    store's job so that it happens in the same write as the state change.
    """

    def __init__(
        self,
        verification_ttl: timedelta = timedelta(hours=1),
        reset_ttl: timedelta = timedelta(hours=1),
    ):
        self.verification_ttl = verification_ttl
        self.reset_ttl = reset_ttl

    def issue_verification_token(self, now: datetime) -> IssuedToken:
        return IssuedToken(TokenHasher.generate_token(), now + self.verification_ttl)

    def issue_reset_token(self, now: datetime) -> IssuedToken:
        return IssuedToken(TokenHasher.generate_token(), now + self.reset_ttl)

    @staticmethod
    def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
        """
        A token without an expiry is treated as expired.

        Naive datetimes are read as UTC (Mongo returns naive values unless
        the client is tz-aware).
        """
        if expires_at is None:
            return True
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now > expires_at

"""
Registration, email verification, login, logout and password reset.

Account lifecycle:

    Unregistered --register--> PendingVerification --verify_email--> Active
    Active/PendingVerification --admin--> Inactive

Login checks run in a fixed order (existence, status, verification,
credential) and each failure has its own message. The password hash is
only compared once the first three checks pass.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, TYPE_CHECKING

from pymongo.errors import DuplicateKeyError
from starlette.concurrency import run_in_threadpool

from common.auth import PasswordHasher
from common.utils import validate_password
from common.utils.exceptions import (
    AuthenticationException,
    BadRequestException,
    ConflictException,
    InternalServerException,
    NotFoundException,
    ValidationException,
)
from storefront.models.session import SessionIdentity
from storefront.models.user import AccountStatus, Inactive, PendingVerification, Role, User
from storefront.services.auth.session_store import SessionStore
from storefront.services.auth.verification_token_service import VerificationTokenService
from storefront.services.email.email_service import EmailService
from storefront.services.user.user_store import UserStore, normalize_email

if TYPE_CHECKING:
    from storefront.services.auth.turnstile_verifier import TurnstileVerifier

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


@dataclass
class RegistrationResult:
    user: User
    email_sent: bool


@dataclass
class LoginResult:
    session_id: str
    identity: SessionIdentity


class AuthFlowController:
    """
    Orchestrates the account flows over the credential and session stores.
    """

    DUPLICATE_EMAIL_MESSAGE = "User already exists with this email."
    HUMAN_CHECK_MESSAGE = "Verification failed. Please try again."

    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        password_hasher: PasswordHasher,
        token_service: VerificationTokenService,
        email_service: EmailService,
        app_url: str,
        human_verifier: Optional["TurnstileVerifier"] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize AuthFlowController.

        Args:
            user_store: Credential store
            session_store: Server-side sessions
            password_hasher: bcrypt hasher
            token_service: Issues verification and reset tokens
            email_service: Sends verification and reset emails
            app_url: Public base URL used in email links
            human_verifier: Turnstile client; None disables the bot check
            clock: Source of the current UTC time
        """
        self._users = user_store
        self._sessions = session_store
        self._hasher = password_hasher
        self._tokens = token_service
        self._email = email_service
        self._app_url = app_url.rstrip("/")
        self._human_verifier = human_verifier
        self._clock = clock

    # ─────────────────────────────────────────────────────────────
    # Bot check
    # ─────────────────────────────────────────────────────────────

    async def check_human(self, challenge_token: Optional[str], client_ip: Optional[str]) -> None:
        """
        Raises:
            BadRequestException: Token missing or rejected
        """
        if self._human_verifier is None:
            return

        result = await self._human_verifier.verify(challenge_token, client_ip)
        if not result.get("success"):
            raise BadRequestException(
                message=self.HUMAN_CHECK_MESSAGE,
                code="HUMAN_VERIFICATION_FAILED",
            )

    # ─────────────────────────────────────────────────────────────
    # Registration and verification
    # ─────────────────────────────────────────────────────────────

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        raw_password: str,
        challenge_token: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> RegistrationResult:
        """
        Create a PendingVerification account and send the verification email.

        Raises:
            BadRequestException: Bot check failed
            ConflictException: Email already registered
            ValidationException: Password fails one or more rules
        """
        await self.check_human(challenge_token, client_ip)

        email = normalize_email(email)

        if await self._users.find_by_email(email):
            raise ConflictException(self.DUPLICATE_EMAIL_MESSAGE, code="DUPLICATE_EMAIL")

        is_valid, errors = validate_password(raw_password)
        if not is_valid:
            raise ValidationException(
                message="Password does not meet the requirements.",
                code="WEAK_PASSWORD",
                errors=errors,
            )

        password_hash = await run_in_threadpool(self._hasher.hash_password, raw_password)
        now = self._clock()
        token = self._tokens.issue_verification_token(now)

        document = {
            "userId": uuid.uuid4().hex,
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "passwordHash": password_hash,
            "role": Role.CUSTOMER.value,
            "accountStatus": AccountStatus.ACTIVE.value,
            "isEmailVerified": False,
            "verificationToken": token.value,
            "verificationTokenExpires": token.expires_at,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            document["_id"] = await self._users.insert(document)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictException(self.DUPLICATE_EMAIL_MESSAGE, code="DUPLICATE_EMAIL")

        user = User.from_document(document)
        email_sent = await self._send_verification(user, token.value)

        logger.info(f"User registered: {user.user_id}")
        return RegistrationResult(user=user, email_sent=email_sent)

    async def _send_verification(self, user: User, token: str) -> bool:
        # The account stays even if the email never goes out
        try:
            result = await self._email.send_verification_email(
                to_email=user.email,
                verification_link=f"{self._app_url}/verify/{token}",
                user_name=user.first_name,
            )
        except Exception:
            logger.exception(f"Failed to send verification email for user {user.user_id}")
            return False

        if not result.get("success"):
            logger.warning(
                f"Verification email not sent for user {user.user_id}: {result.get('error')}"
            )
            return False
        return True

    async def verify_email(self, token: str) -> User:
        """
        Consume a verification token.

        Raises:
            NotFoundException: No user holds this token (or it was just used)
            BadRequestException: Token expired
        """
        user = await self._users.find_by_verification_token(token)
        if user is None or not isinstance(user.state, PendingVerification):
            raise NotFoundException(
                message="Invalid verification link.",
                code="TOKEN_NOT_FOUND",
            )

        if self._tokens.is_expired(user.state.expires_at, self._clock()):
            raise BadRequestException(
                message="Verification link has expired. Please register again.",
                code="TOKEN_EXPIRED",
            )

        if not await self._users.mark_email_verified(user.id, token):
            raise NotFoundException(
                message="Invalid verification link.",
                code="TOKEN_NOT_FOUND",
            )

        logger.info(f"Email verified for user {user.user_id}")
        return await self._users.find_by_id(str(user.id)) or user

    # ─────────────────────────────────────────────────────────────
    # Login / logout
    # ─────────────────────────────────────────────────────────────

    async def login(
        self,
        email: str,
        raw_password: str,
        challenge_token: Optional[str] = None,
        client_ip: Optional[str] = None,
        previous_session_id: Optional[str] = None,
    ) -> LoginResult:
        """
        Authenticate and open a new session.

        Raises:
            BadRequestException: Bot check failed
            AuthenticationException: USER_NOT_FOUND, ACCOUNT_INACTIVE,
                EMAIL_NOT_VERIFIED or INVALID_CREDENTIALS, in that order
        """
        await self.check_human(challenge_token, client_ip)

        user = await self._users.find_by_email(email)
        if user is None:
            raise AuthenticationException("User not found.", code="USER_NOT_FOUND")

        if isinstance(user.state, Inactive):
            raise AuthenticationException("Account is not active.", code="ACCOUNT_INACTIVE")

        if isinstance(user.state, PendingVerification):
            raise AuthenticationException(
                "Please verify your email before logging in.",
                code="EMAIL_NOT_VERIFIED",
            )

        password_ok, new_hash = await run_in_threadpool(
            self._hasher.verify_and_update, raw_password, user.password_hash
        )
        if not password_ok:
            raise AuthenticationException("Invalid password.", code="INVALID_CREDENTIALS")

        if new_hash:
            await self._users.update_fields(user.id, {"passwordHash": new_hash})
            logger.info(f"Upgraded password hash for user {user.user_id}")

        # Never reuse a session id that existed before authentication
        if previous_session_id:
            await self._sessions.destroy(previous_session_id)

        identity = SessionIdentity.from_user(user)
        session_id = await self._sessions.create(identity, now=self._clock())

        logger.info(f"User logged in: {user.user_id}")
        return LoginResult(session_id=session_id, identity=identity)

    async def logout(self, session_id: Optional[str]) -> None:
        """
        Destroy the session.

        Raises:
            InternalServerException: The store failed; the user is told so
                instead of silently staying logged in
        """
        try:
            await self._sessions.destroy(session_id)
        except Exception as e:
            logger.exception("Failed to destroy session on logout")
            raise InternalServerException(
                message="Logout failed. Please try again.",
                code="LOGOUT_FAILED",
            ) from e

    # ─────────────────────────────────────────────────────────────
    # Password reset
    # ─────────────────────────────────────────────────────────────

    async def request_password_reset(self, email: str) -> None:
        """
        Email a reset link if the account exists.

        Callers show the same message either way, so nothing here reveals
        whether the address is registered.
        """
        user = await self._users.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = self._tokens.issue_reset_token(self._clock())
        await self._users.update_fields(
            user.id,
            {
                "passwordResetToken": token.value,
                "passwordResetExpires": token.expires_at,
            },
        )

        try:
            result = await self._email.send_password_reset_email(
                to_email=user.email,
                reset_link=f"{self._app_url}/password/reset/{token.value}",
                user_name=user.first_name,
            )
        except Exception:
            logger.exception(f"Failed to send password reset email for user {user.user_id}")
            return

        if not result.get("success"):
            logger.warning(
                f"Password reset email not sent for user {user.user_id}: {result.get('error')}"
            )

    async def check_reset_token(self, token: str) -> User:
        """
        Raises:
            NotFoundException: Unknown token
            BadRequestException: Token expired
        """
        found = await self._users.find_by_reset_token(token)
        if found is None:
            raise NotFoundException(message="Invalid password reset link.", code="TOKEN_NOT_FOUND")

        user, expires_at = found
        if self._tokens.is_expired(expires_at, self._clock()):
            raise BadRequestException(
                message="Password reset link has expired. Please request a new one.",
                code="TOKEN_EXPIRED",
            )
        return user

    async def reset_password(self, token: str, new_password: str, password_confirm: str) -> User:
        """
        Replace the password using a reset token.

        Raises:
            NotFoundException: Unknown or already used token
            BadRequestException: Token expired
            ValidationException: Passwords differ or fail the rules
        """
        user = await self.check_reset_token(token)

        if new_password != password_confirm:
            raise ValidationException(message="Passwords do not match.", code="PASSWORD_MISMATCH")

        is_valid, errors = validate_password(new_password)
        if not is_valid:
            raise ValidationException(
                message="Password does not meet the requirements.",
                code="WEAK_PASSWORD",
                errors=errors,
            )

        password_hash = await run_in_threadpool(self._hasher.hash_password, new_password)
        if not await self._users.replace_password(user.id, token, password_hash):
            raise NotFoundException(message="Invalid password reset link.", code="TOKEN_NOT_FOUND")

        # Sessions opened with the old password do not survive a reset
        await self._sessions.destroy_for_user(str(user.id))

        logger.info(f"Password reset for user {user.user_id}")
        return user

"""
FastAPI dependencies for HelloStore.

Services are built once at startup into a ServiceContainer stored on
``app.state.services``; the getters below read it from the request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import PasswordHasher
from config import EMAIL_DEFAULTS, TURNSTILE_TIMEOUT, TURNSTILE_VERIFY_URL
from storefront.config import Settings
from storefront.middleware.access_gate import AccessGate
from storefront.middleware.role_gate import check_admin, check_session
from storefront.middleware.session_cookie import SessionCookie
from storefront.models.session import SessionData, SessionIdentity
from storefront.services.auth.auth_flow import AuthFlowController, utcnow
from storefront.services.auth.session_store import SessionStore
from storefront.services.auth.turnstile_verifier import TurnstileVerifier
from storefront.services.auth.verification_token_service import VerificationTokenService
from storefront.services.email.email_service import EmailService
from storefront.services.user.admin_user_service import AdminUserService
from storefront.services.user.profile_service import ProfileService
from storefront.services.user.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    user_store: UserStore
    session_store: SessionStore
    auth_flow: AuthFlowController
    admin_users: AdminUserService
    profiles: ProfileService


# ─────────────────────────────────────────────────────────────────
# Construction
# ─────────────────────────────────────────────────────────────────

def build_email_service(settings: Settings) -> EmailService:
    return EmailService(
        mode=settings.EMAIL_MODE,
        resend_api_key=settings.RESEND_API_KEY,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        team_name=EMAIL_DEFAULTS["team_name"],
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        verification_expire_hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS,
        reset_expire_hours=settings.PASSWORD_RESET_EXPIRE_HOURS,
    )


def build_human_verifier(settings: Settings) -> Optional[TurnstileVerifier]:
    """Turnstile client, or None when no secret key is configured."""
    if not settings.human_check_enabled:
        return None
    return TurnstileVerifier(
        secret_key=settings.TURNSTILE_SECRET_KEY,
        verify_url=TURNSTILE_VERIFY_URL,
        timeout=TURNSTILE_TIMEOUT,
    )


def build_services(
    settings: Settings,
    user_store: UserStore,
    session_store: SessionStore,
    email_service: Optional[EmailService] = None,
    human_verifier: Optional[TurnstileVerifier] = None,
    password_hasher: Optional[PasswordHasher] = None,
    clock: Callable[[], datetime] = utcnow,
) -> ServiceContainer:
    """
    Wire every service over the given stores.

    Args:
        settings: Application settings
        user_store: Credential store
        session_store: Session store
        email_service: Defaults to one built from settings
        human_verifier: Turnstile client; None disables the bot check
        password_hasher: Defaults to bcrypt at BCRYPT_ROUNDS
        clock: Source of the current UTC time

    Returns:
        ServiceContainer
    """
    auth_flow = AuthFlowController(
        user_store=user_store,
        session_store=session_store,
        password_hasher=password_hasher or PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        token_service=VerificationTokenService(
            verification_ttl=timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
            reset_ttl=timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
        ),
        email_service=email_service or build_email_service(settings),
        app_url=settings.APP_URL,
        human_verifier=human_verifier,
        clock=clock,
    )

    return ServiceContainer(
        settings=settings,
        user_store=user_store,
        session_store=session_store,
        auth_flow=auth_flow,
        admin_users=AdminUserService(user_store, session_store),
        profiles=ProfileService(user_store),
    )


def init_services(
    settings: Settings,
    db: AsyncIOMotorDatabase,
    clock: Callable[[], datetime] = utcnow,
) -> ServiceContainer:
    """
    Initialize all services at application startup.

    Args:
        settings: Application settings
        db: Connected MongoDB database
        clock: Source of the current UTC time
    """
    email_service = build_email_service(settings)
    services = build_services(
        settings=settings,
        user_store=UserStore(db),
        session_store=SessionStore(db),
        email_service=email_service,
        human_verifier=build_human_verifier(settings),
        clock=clock,
    )
    logger.info(
        f"Services initialized (email mode: {email_service.mode}, "
        f"bot check: {'on' if settings.human_check_enabled else 'off'})"
    )
    return services


def build_access_gate(settings: Settings) -> AccessGate:
    return AccessGate(idle_timeout=timedelta(minutes=settings.SESSION_IDLE_TIMEOUT_MINUTES))


def build_session_cookie(settings: Settings) -> SessionCookie:
    return SessionCookie(
        name=settings.SESSION_COOKIE_NAME,
        max_age=settings.session_idle_timeout_seconds,
        secure=settings.is_production(),
    )


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_services(request: Request) -> ServiceContainer:
    """Get the service container."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized.")
    return services


def get_settings(request: Request) -> Settings:
    return get_services(request).settings


def get_auth_flow(request: Request) -> AuthFlowController:
    return get_services(request).auth_flow


def get_admin_user_service(request: Request) -> AdminUserService:
    return get_services(request).admin_users


def get_profile_service(request: Request) -> ProfileService:
    return get_services(request).profiles


def get_session_cookie(request: Request) -> SessionCookie:
    return request.app.state.session_cookie


def get_session(request: Request) -> Optional[SessionData]:
    """Session attached by the access gate middleware, if any."""
    return getattr(request.state, "session", None)


def get_session_id(request: Request) -> Optional[str]:
    return getattr(request.state, "session_id", None)


async def require_session(
    session: Annotated[Optional[SessionData], Depends(get_session)],
) -> SessionIdentity:
    """Dependency that requires a logged-in user."""
    return check_session(session)


async def require_admin(
    session: Annotated[Optional[SessionData], Depends(get_session)],
) -> SessionIdentity:
    """Dependency that requires a logged-in admin."""
    return check_admin(session)


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    if request.client:
        return request.client.host
    return "0.0.0.0"

"""
Role gate for admin-only pages.

This is the only admin check in the app; routes depend on
``require_admin`` rather than testing the role inline.
"""

from typing import Optional

from common.utils.exceptions import ForbiddenException, UnauthorizedException
from storefront.models.session import SessionData, SessionIdentity


def check_session(session: Optional[SessionData]) -> SessionIdentity:
    """
    Raises:
        UnauthorizedException: No authenticated session
    """
    if session is None or session.identity is None:
        raise UnauthorizedException()
    return session.identity


def check_admin(session: Optional[SessionData]) -> SessionIdentity:
    """
    Allow only an authenticated admin.

    Raises:
        UnauthorizedException: No authenticated session (401)
        ForbiddenException: Authenticated but not an admin (403)
    """
    identity = check_session(session)
    if not identity.is_admin:
        raise ForbiddenException()
    return identity

"""
HelloStore middleware.

All middleware components are imported here.
"""

from storefront.middleware.access_gate import (
    AccessGate,
    AccessGateMiddleware,
    GateDecision,
    GateOutcome,
)
from storefront.middleware.error_handlers import register_exception_handlers
from storefront.middleware.role_gate import check_admin, check_session
from storefront.middleware.session_cookie import SessionCookie

__all__ = [
    "AccessGate",
    "AccessGateMiddleware",
    "GateDecision",
    "GateOutcome",
    "register_exception_handlers",
    "check_admin",
    "check_session",
    "SessionCookie",
]

"""
Domain models for users and sessions.
"""

from storefront.models.user import (
    AccountState,
    AccountStatus,
    Active,
    Inactive,
    PendingVerification,
    PRIVATE_FIELDS,
    Role,
    User,
)
from storefront.models.session import SessionData, SessionIdentity

__all__ = [
    "AccountState",
    "AccountStatus",
    "Active",
    "Inactive",
    "PendingVerification",
    "PRIVATE_FIELDS",
    "Role",
    "User",
    "SessionData",
    "SessionIdentity",
]

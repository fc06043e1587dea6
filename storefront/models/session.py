"""
Server-side session data.

The snapshot is copied from the user record at login and is what the
access gate, the role gate and the templates see of the current user.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.user import Role, User


class SessionIdentity(BaseModel):
    """Authenticated user snapshot held in a session."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    external_id: str = Field(alias="externalId")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    role: Role
    is_email_verified: bool = Field(alias="isEmailVerified")

    @classmethod
    def from_user(cls, user: User) -> "SessionIdentity":
        return cls(
            id=str(user.id),
            external_id=user.user_id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=user.role,
            is_email_verified=user.is_email_verified,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SessionData(BaseModel):
    """A loaded session: identity snapshot plus activity timestamp."""

    identity: Optional[SessionIdentity] = None
    last_activity: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @classmethod
    def from_document(cls, doc: dict) -> "SessionData":
        data = doc.get("data") or None
        return cls(
            identity=SessionIdentity.model_validate(data) if data else None,
            last_activity=doc.get("lastActivity"),
            created_at=doc.get("createdAt"),
        )

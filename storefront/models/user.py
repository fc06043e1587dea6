"""
User record and account state.

Stored documents keep the flat field layout of the ``users`` collection
(``accountStatus``, ``isEmailVerified``, ``verificationToken`` ...). In
code the account state is a tagged union so the token and its expiry
only exist while verification is pending.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class PendingVerification(BaseModel):
    """Registered, email not yet confirmed."""
    kind: Literal["pending_verification"] = "pending_verification"
    token: Optional[str] = None
    expires_at: Optional[datetime] = None


class Active(BaseModel):
    kind: Literal["active"] = "active"


class Inactive(BaseModel):
    """Disabled by an administrator."""
    kind: Literal["inactive"] = "inactive"
    email_verified: bool = True


AccountState = Annotated[
    Union[PendingVerification, Active, Inactive],
    Field(discriminator="kind"),
]

# Fields that must never leave the credential store boundary
PRIVATE_FIELDS = (
    "passwordHash",
    "verificationToken",
    "verificationTokenExpires",
    "passwordResetToken",
    "passwordResetExpires",
)


class User(BaseModel):
    """A user record loaded from the ``users`` collection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: ObjectId
    user_id: str
    first_name: str
    last_name: str
    email: str
    password_hash: str = Field(repr=False)
    role: Role = Role.CUSTOMER
    state: AccountState
    address: str = ""
    contact_number: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: dict) -> "User":
        """Build a User from a raw Mongo document."""
        if doc.get("accountStatus", AccountStatus.ACTIVE.value) != AccountStatus.ACTIVE.value:
            state: Any = Inactive(email_verified=bool(doc.get("isEmailVerified", False)))
        elif not doc.get("isEmailVerified", False):
            state = PendingVerification(
                token=doc.get("verificationToken"),
                expires_at=doc.get("verificationTokenExpires"),
            )
        else:
            state = Active()

        return cls(
            id=doc["_id"],
            user_id=str(doc.get("userId") or doc["_id"]),
            first_name=doc.get("firstName", ""),
            last_name=doc.get("lastName", ""),
            email=doc.get("email", ""),
            password_hash=doc.get("passwordHash", ""),
            role=Role(doc.get("role", Role.CUSTOMER.value)),
            state=state,
            address=doc.get("address") or "",
            contact_number=doc.get("contactNumber") or "",
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    @property
    def is_active(self) -> bool:
        return not isinstance(self.state, Inactive)

    @property
    def is_email_verified(self) -> bool:
        if isinstance(self.state, Inactive):
            return self.state.email_verified
        return isinstance(self.state, Active)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_public(self) -> dict:
        """Fields safe to render or serialize; no hash, no tokens."""
        return {
            "id": str(self.id),
            "userId": self.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role.value,
            "accountStatus": (
                AccountStatus.INACTIVE.value
                if isinstance(self.state, Inactive)
                else AccountStatus.ACTIVE.value
            ),
            "isEmailVerified": self.is_email_verified,
            "address": self.address,
            "contactNumber": self.contact_number,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

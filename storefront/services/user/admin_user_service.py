"""
Admin user management.

Routes reach this service only through the role gate, so callers here
are already known to be admins.
"""

import logging
from typing import List, Optional

from common.utils.exceptions import ForbiddenException, NotFoundException, ValidationException
from storefront.models.session import SessionIdentity
from storefront.models.user import AccountStatus, Role, User
from storefront.services.auth.session_store import SessionStore
from storefront.services.user.user_store import UserStore

logger = logging.getLogger(__name__)


class AdminUserService:
    """
    Lists, edits and deletes user records.
    """

    def __init__(self, user_store: UserStore, session_store: SessionStore):
        """
        Initialize AdminUserService.

        Args:
            user_store: Credential store
            session_store: Used to log out users who are deactivated or deleted
        """
        self._users = user_store
        self._sessions = session_store

    async def list_users(self) -> List[User]:
        return await self._users.list_all()

    async def get_stats(self) -> dict:
        """Counts for the admin dashboard."""
        return {
            "totalUsers": await self._users.count(),
            "admins": await self._users.count({"role": Role.ADMIN.value}),
            "inactive": await self._users.count({"accountStatus": AccountStatus.INACTIVE.value}),
            "unverified": await self._users.count({"isEmailVerified": False}),
        }

    async def get_user(self, user_id: str) -> User:
        """
        Raises:
            NotFoundException: No user with this external id
        """
        user = await self._users.find_by_external_id(user_id)
        if user is None:
            raise NotFoundException("User not found.", code="USER_NOT_FOUND")
        return user

    async def update_user(
        self,
        user_id: str,
        role: str,
        account_status: str,
        actor: Optional[SessionIdentity] = None,
    ) -> User:
        """
        Change a user's role and account status.

        Raises:
            ValidationException: Unknown role or status value
            NotFoundException: No such user
        """
        try:
            new_role = Role(role)
        except ValueError:
            raise ValidationException("Invalid role.", code="INVALID_ROLE")

        try:
            new_status = AccountStatus(account_status)
        except ValueError:
            raise ValidationException("Invalid account status.", code="INVALID_STATUS")

        user = await self.get_user(user_id)
        await self._users.update_fields(
            user.id,
            {"role": new_role.value, "accountStatus": new_status.value},
        )

        if new_status == AccountStatus.INACTIVE or new_role != user.role:
            # Session snapshots carry the role; force a fresh login
            await self._sessions.destroy_for_user(str(user.id))

        actor_id = actor.external_id if actor else "unknown"
        logger.info(
            f"Admin {actor_id} updated user {user_id}: "
            f"role={new_role.value} status={new_status.value}"
        )
        return await self.get_user(user_id)

    async def delete_user(self, actor: SessionIdentity, user_id: str) -> None:
        """
        Delete a user record.

        Raises:
            ForbiddenException: Admin tried to delete their own record
            NotFoundException: No such user
        """
        if actor.external_id == user_id:
            raise ForbiddenException(
                "You cannot delete your own account.",
                code="SELF_DELETION_FORBIDDEN",
            )

        user = await self.get_user(user_id)
        await self._users.delete(user.id)
        await self._sessions.destroy_for_user(str(user.id))

        logger.info(f"Admin {actor.external_id} deleted user {user_id}")

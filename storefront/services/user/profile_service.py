"""
Profile service for the signed-in user's contact details.
"""

import logging

from common.utils.exceptions import NotFoundException
from storefront.models.session import SessionIdentity
from storefront.models.user import User
from storefront.services.user.user_store import UserStore

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Reads and updates address and contact number.
    """

    def __init__(self, user_store: UserStore):
        self._users = user_store

    async def get_profile(self, identity: SessionIdentity) -> User:
        """
        Raises:
            NotFoundException: The session outlived its user record
        """
        user = await self._users.find_by_id(identity.id)
        if user is None:
            raise NotFoundException("User not found.", code="USER_NOT_FOUND")
        return user

    async def update_profile(
        self,
        identity: SessionIdentity,
        address: str,
        contact_number: str,
    ) -> User:
        user = await self.get_profile(identity)
        await self._users.update_fields(
            user.id,
            {
                "address": (address or "").strip(),
                "contactNumber": (contact_number or "").strip(),
            },
        )
        logger.info(f"Profile updated for user {user.user_id}")
        return await self.get_profile(identity)

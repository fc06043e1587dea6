"""
Credential store over the ``users`` collection.

Every method is a single Motor call, so each one is atomic on the
server. Emails are normalized here as well as by callers so lookups
never depend on caller discipline.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from storefront.models.user import PRIVATE_FIELDS, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserStore:
    """
    Reads and writes user records.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize UserStore.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db["users"]

    async def ensure_indexes(self) -> None:
        """Create the unique and lookup indexes used by this store."""
        await self._users_collection.create_index([("email", ASCENDING)], unique=True)
        await self._users_collection.create_index([("userId", ASCENDING)], unique=True)
        await self._users_collection.create_index(
            [("verificationToken", ASCENDING)], sparse=True
        )
        await self._users_collection.create_index(
            [("passwordResetToken", ASCENDING)], sparse=True
        )
        logger.info("User indexes ensured")

    async def find_by_email(self, email: str) -> Optional[User]:
        doc = await self._users_collection.find_one({"email": normalize_email(email)})
        return User.from_document(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """
        Load user by MongoDB ID.

        Args:
            user_id: MongoDB ObjectId as string

        Returns:
            User or None if not found or the id is malformed
        """
        try:
            oid = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        doc = await self._users_collection.find_one({"_id": oid})
        return User.from_document(doc) if doc else None

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        doc = await self._users_collection.find_one({"userId": external_id})
        return User.from_document(doc) if doc else None

    async def find_by_verification_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        doc = await self._users_collection.find_one({"verificationToken": token})
        return User.from_document(doc) if doc else None

    async def find_by_reset_token(
        self, token: str
    ) -> Optional[Tuple[User, Optional[datetime]]]:
        """
        Load the holder of a password reset token.

        Returns:
            (user, reset expiry) or None. The expiry is returned alongside
            because a pending reset is not part of the account state.
        """
        if not token:
            return None
        doc = await self._users_collection.find_one({"passwordResetToken": token})
        if not doc:
            return None
        return User.from_document(doc), doc.get("passwordResetExpires")

    async def insert(self, document: dict) -> ObjectId:
        """
        Insert a new user document.

        Args:
            document: Full user document; email is normalized before insert

        Returns:
            Inserted ObjectId
        """
        document = dict(document)
        document["email"] = normalize_email(document.get("email", ""))
        result = await self._users_collection.insert_one(document)
        logger.info(f"User created: {result.inserted_id}")
        return result.inserted_id

    async def update_fields(
        self,
        user_id: ObjectId,
        fields: dict,
        unset: Iterable[str] = (),
    ) -> bool:
        """
        Set (and optionally unset) fields in one update.

        Returns:
            True if a record matched
        """
        update: dict = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        unset = list(unset)
        if unset:
            update["$unset"] = {name: "" for name in unset}

        result = await self._users_collection.update_one({"_id": user_id}, update)
        return result.matched_count > 0

    async def mark_email_verified(self, user_id: ObjectId, token: str) -> bool:
        """
        Flip isEmailVerified and drop the token in a single write.

        The filter includes the token, so two concurrent consumers of the
        same token cannot both succeed.

        Returns:
            True if this call consumed the token
        """
        result = await self._users_collection.update_one(
            {"_id": user_id, "verificationToken": token},
            {
                "$set": {
                    "isEmailVerified": True,
                    "updatedAt": datetime.now(timezone.utc),
                },
                "$unset": {"verificationToken": "", "verificationTokenExpires": ""},
            },
        )
        return result.modified_count > 0

    async def replace_password(self, user_id: ObjectId, token: str, password_hash: str) -> bool:
        """Store a new hash and consume the reset token in one write."""
        result = await self._users_collection.update_one(
            {"_id": user_id, "passwordResetToken": token},
            {
                "$set": {
                    "passwordHash": password_hash,
                    "updatedAt": datetime.now(timezone.utc),
                },
                "$unset": {"passwordResetToken": "", "passwordResetExpires": ""},
            },
        )
        return result.modified_count > 0

    async def delete(self, user_id: ObjectId) -> bool:
        result = await self._users_collection.delete_one({"_id": user_id})
        if result.deleted_count:
            logger.info(f"User deleted: {user_id}")
        return result.deleted_count > 0

    async def list_all(self, exclude_fields: Iterable[str] = PRIVATE_FIELDS) -> List[User]:
        """
        List every user, newest first, without the excluded fields.

        Args:
            exclude_fields: Document fields to leave out of the projection
        """
        projection = {name: 0 for name in exclude_fields}
        cursor = self._users_collection.find({}, projection).sort("createdAt", -1)
        docs = await cursor.to_list(length=None)
        return [User.from_document(doc) for doc in docs]

    async def count(self, query: Optional[dict] = None) -> int:
        return await self._users_collection.count_documents(query or {})

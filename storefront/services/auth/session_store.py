"""
Server-side session storage.

Sessions live in their own ``sessions`` collection keyed by the SHA-256
hash of the opaque session id. The raw id is only ever held by the
browser cookie.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from storefront.models.session import SessionData, SessionIdentity
from storefront.services.auth.token_hasher import TokenHasher

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Handles session CRUD operations.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize SessionStore.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._sessions_collection = db["sessions"]

    async def ensure_indexes(self, idle_timeout_seconds: int) -> None:
        """
        Index sessions by owner and let MongoDB sweep abandoned ones.

        The TTL monitor runs about once a minute, so the access gate still
        enforces the exact idle threshold.
        """
        await self._sessions_collection.create_index([("data.id", ASCENDING)])
        await self._sessions_collection.create_index(
            [("lastActivity", ASCENDING)],
            expireAfterSeconds=idle_timeout_seconds,
        )

    async def create(
        self,
        identity: SessionIdentity,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Create a new session for an authenticated user.

        Args:
            identity: Snapshot of the user stored in the session
            now: Creation instant, also the initial lastActivity

        Returns:
            The raw session id for the cookie

        Side Effects:
            - Generates secure random id
            - Stores only its SHA-256 hash
        """
        session_id = TokenHasher.generate_token()
        now = now or datetime.now(timezone.utc)

        await self._sessions_collection.insert_one({
            "_id": TokenHasher.hash_token(session_id),
            "data": identity.to_document(),
            "createdAt": now,
            "lastActivity": now,
        })

        logger.info(f"Session created for user {identity.id}")
        return session_id

    async def get(self, session_id: Optional[str]) -> Optional[SessionData]:
        """
        Load a session by raw id.

        Returns:
            SessionData, or None for a missing/unknown id
        """
        if not session_id:
            return None

        doc = await self._sessions_collection.find_one(
            {"_id": TokenHasher.hash_token(session_id)}
        )
        if not doc:
            return None

        return SessionData.from_document(doc)

    async def set(self, session_id: str, fields: dict) -> None:
        """
        Update top-level session fields (e.g. ``{"data.firstName": "Ann"}``).
        """
        await self._sessions_collection.update_one(
            {"_id": TokenHasher.hash_token(session_id)},
            {"$set": fields},
        )

    async def touch(self, session_id: str, now: Optional[datetime] = None) -> None:
        """Record activity on a session, restarting its idle clock."""
        await self.set(session_id, {"lastActivity": now or datetime.now(timezone.utc)})

    async def destroy(self, session_id: Optional[str]) -> bool:
        """
        Remove a session.

        Returns:
            True if a session was removed, False if none existed
        """
        if not session_id:
            return False

        result = await self._sessions_collection.delete_one(
            {"_id": TokenHasher.hash_token(session_id)}
        )

        if result.deleted_count > 0:
            logger.info("Session destroyed")
            return True

        return False

    async def destroy_for_user(self, user_id: str) -> int:
        """
        Remove every session belonging to a user.

        Returns:
            Number of sessions removed
        """
        result = await self._sessions_collection.delete_many({"data.id": user_id})
        if result.deleted_count:
            logger.info(f"Revoked {result.deleted_count} sessions for user {user_id}")
        return result.deleted_count

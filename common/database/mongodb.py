"""
Async MongoDB connection used by the storefront.

The app factory owns one MongoDB instance for the process lifetime and
hands its database handle to the stores; nothing else opens a client.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def mask_uri(uri: str) -> str:
    """Strip credentials from a connection string for logging."""
    if "@" not in uri:
        return uri
    scheme, _, rest = uri.partition("://")
    return f"{scheme}://***@{rest.rsplit('@', 1)[-1]}"


class MongoDB:
    """Process-wide Motor client plus the selected database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, uri: str, database_name: str, timeout_ms: int = 5000) -> None:
        """
        Open the client and ping the server once.

        Raises:
            PyMongoError: Server unreachable within timeout_ms
        """
        logger.info(f"Connecting to MongoDB at {mask_uri(uri)} (db={database_name})")

        client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=timeout_ms, tz_aware=True)
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            logger.error(f"MongoDB connection failed: {e}")
            raise

        self._client = client
        self._db = client[database_name]
        logger.info("MongoDB connected")

    async def disconnect(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._db = None
        logger.info("MongoDB disconnected")

    async def ping(self) -> bool:
        """True when the server answers; used by the health check."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False
        return True

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

"""User directory lookups -- read-only access to the users collection.

Profiles are owned by the identity service; the ledger only needs display
names for audit entries and invites.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger("homegame.dal.users")

COLLECTION = "users"

UNKNOWN_DISPLAY_NAME = "Unknown"


class UserDAL:
    """Data access layer for the users collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def get_display_name(self, user_id: str) -> Optional[str]:
        """Return the user's display name, falling back to their username.

        Returns:
            The name, or None if the user has no profile.
        """
        doc = await self._collection.find_one(
            {"_id": user_id}, {"display_name": 1, "username": 1}
        )
        if doc is None:
            return None
        return doc.get("display_name") or doc.get("username")

    async def resolve_display_name(self, user_id: str, fallback: Optional[str] = None) -> str:
        name = await self.get_display_name(user_id)
        return name or fallback or UNKNOWN_DISPLAY_NAME

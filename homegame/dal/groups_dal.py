"""Group lookups -- membership and the list of games attached to a group."""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger("homegame.dal.groups")

COLLECTION = "groups"


class GroupDAL:
    """Data access layer for the groups collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def get_member_ids(self, group_id: str) -> Optional[list[str]]:
        """Return the group's member user ids, or None if the group is absent."""
        doc = await self._collection.find_one({"_id": group_id}, {"member_ids": 1})
        if doc is None:
            return None
        return list(doc.get("member_ids", []))

    async def add_game(self, group_id: str, game_id: str) -> bool:
        """Attach a game to the group (idempotent).

        Returns:
            True if the group document was modified.
        """
        result = await self._collection.update_one(
            {"_id": group_id},
            {"$addToSet": {"game_ids": game_id}},
        )
        if result.matched_count == 0:
            logger.warning("Group %s not found while attaching game %s", group_id, game_id)
        return result.modified_count > 0

"""Linked external events -- the user_events collection.

A game may reference an external event record (``linked_event_id``). The
ledger treats that record as opaque apart from its ``status`` field, which
is flipped to ``completed`` when the game ends.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger("homegame.dal.user_events")

COLLECTION = "user_events"

COMPLETED = "completed"


class UserEventDAL:
    """Data access layer for the user_events collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def mark_completed(self, event_id: str) -> bool:
        """Set the linked event's status to completed.

        Returns:
            True if the event exists.
        """
        result = await self._collection.update_one(
            {"_id": event_id},
            {"$set": {"status": COMPLETED}},
        )
        if result.matched_count == 0:
            logger.warning("Linked event %s not found", event_id)
            return False
        logger.info("Linked event %s marked completed", event_id)
        return True

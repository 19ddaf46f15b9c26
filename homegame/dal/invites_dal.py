"""Invite Data Access Layer -- MongoDB operations for the game_invites collection."""

import logging
from datetime import datetime
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from homegame.dal.subscriptions import SnapshotBroker, get_broker, invites_topic
from homegame.models.common import InviteStatus, utc_now
from homegame.models.invite import GameInvite

logger = logging.getLogger("homegame.dal.invites")

COLLECTION = "game_invites"


class InviteDAL:
    """Data access layer for the game_invites collection."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        broker: Optional[SnapshotBroker] = None,
    ) -> None:
        self._collection = db[COLLECTION]
        self._broker = broker or get_broker()

    @property
    def broker(self) -> SnapshotBroker:
        return self._broker

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, invite: GameInvite) -> GameInvite:
        await self._collection.insert_one(invite.to_mongo_dict())
        logger.info(
            "Created invite %s for user %s to game %s",
            invite.id,
            invite.invited_user_id,
            invite.game_id,
        )
        await self._notify(invite.invited_user_id)
        return invite

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, invite_id: str) -> Optional[GameInvite]:
        doc = await self._collection.find_one({"_id": invite_id})
        if doc is None:
            return None
        try:
            return GameInvite.model_validate(doc)
        except ValidationError as exc:
            logger.warning("Invite %s is malformed: %s", invite_id, exc)
            return None

    async def list_by_game(self, game_id: str) -> list[GameInvite]:
        """All invites for a game, newest first."""
        return await self._find_many({"game_id": game_id})

    async def list_pending_by_user(self, user_id: str) -> list[GameInvite]:
        """Pending invites addressed to a user, newest first."""
        return await self._find_many(
            {"invited_user_id": user_id, "status": str(InviteStatus.PENDING)}
        )

    async def list_pending(self) -> list[GameInvite]:
        return await self._find_many({"status": str(InviteStatus.PENDING)})

    async def _find_many(self, query: dict[str, Any]) -> list[GameInvite]:
        cursor = self._collection.find(query).sort("created_at", -1)
        invites: list[GameInvite] = []
        async for doc in cursor:
            try:
                invites.append(GameInvite.model_validate(doc))
            except ValidationError as exc:
                logger.warning("Skipping malformed invite %s: %s", doc.get("_id"), exc)
        return invites

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def respond(
        self,
        invite_id: str,
        new_status: InviteStatus,
        responded_at: Optional[datetime] = None,
    ) -> Optional[GameInvite]:
        """Move a pending invite to ``new_status``.

        Uses an optimistic lock on ``status: pending`` so two concurrent
        responses cannot both land.

        Returns:
            The updated invite, or None if it was no longer pending.
        """
        result = await self._collection.update_one(
            {"_id": invite_id, "status": str(InviteStatus.PENDING)},
            {
                "$set": {
                    "status": str(new_status),
                    "responded_at": responded_at or utc_now(),
                }
            },
        )
        if result.modified_count == 0:
            return None
        invite = await self.get_by_id(invite_id)
        if invite is not None:
            logger.info("Invite %s moved to %s", invite_id, new_status)
            await self._notify(invite.invited_user_id)
        return invite

    async def expire_pending_for_game(self, game_id: str) -> int:
        """Mark every pending invite for ``game_id`` as expired.

        Returns:
            The number of invites expired.
        """
        pending = await self._find_many(
            {"game_id": game_id, "status": str(InviteStatus.PENDING)}
        )
        if not pending:
            return 0
        result = await self._collection.update_many(
            {"game_id": game_id, "status": str(InviteStatus.PENDING)},
            {"$set": {"status": str(InviteStatus.EXPIRED), "responded_at": utc_now()}},
        )
        for user_id in {invite.invited_user_id for invite in pending}:
            await self._notify(user_id)
        if result.modified_count:
            logger.info("Expired %d pending invites for game %s", result.modified_count, game_id)
        return result.modified_count

    async def _notify(self, user_id: str) -> None:
        await self._broker.publish(invites_topic(user_id), user_id)

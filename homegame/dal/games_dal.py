"""Game Data Access Layer -- MongoDB operations for the games collection.

Provides point reads, filtered listings, and the atomic read-modify-write
entry point used by every ledger mutation. Each committed snapshot is
published to the snapshot broker for real-time listeners.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from homegame.config import settings
from homegame.dal.concurrency import atomic_update
from homegame.dal.subscriptions import (
    ALL_GAMES_TOPIC,
    SnapshotBroker,
    game_topic,
    get_broker,
)
from homegame.models.common import GameStatus
from homegame.models.game import Game

logger = logging.getLogger("homegame.dal.games")

COLLECTION = "games"

R = TypeVar("R")


class GameDAL:
    """Data access layer for the games collection."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        broker: Optional[SnapshotBroker] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self._collection = db[COLLECTION]
        self._broker = broker or get_broker()
        self._max_attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS

    @property
    def broker(self) -> SnapshotBroker:
        return self._broker

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, game: Game) -> Game:
        """Insert a new game document.

        Args:
            game: A fully built Game (its id is generated client-side).

        Returns:
            The same Game, as stored.
        """
        await self._collection.insert_one(game.to_mongo_dict())
        logger.info("Created game %s (%s) for creator %s", game.id, game.title, game.creator_id)
        await self._publish(game)
        return game

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, game_id: str) -> Optional[Game]:
        """Find a game by its ``_id``.

        Returns:
            A Game instance, or None if not found.
        """
        doc = await self._collection.find_one({"_id": game_id})
        if doc is None:
            return None
        return Game.from_mongo(doc)

    async def list_active_by_creator(self, user_id: str, limit: int = 50) -> list[Game]:
        """Active games hosted by ``user_id``, newest first."""
        return await self._find_many(
            {"creator_id": user_id, "status": str(GameStatus.ACTIVE)}, limit
        )

    async def list_active_standalone_by_player(
        self, user_id: str, limit: int = 50
    ) -> list[Game]:
        """Active games outside any group where ``user_id`` is seated."""
        return await self._find_many(
            {
                "status": str(GameStatus.ACTIVE),
                "group_id": None,
                "player_ids": user_id,
            },
            limit,
        )

    async def list_active_standalone_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[Game]:
        """Active standalone games the user hosts or plays in, newest first."""
        return await self._find_many(
            {
                "status": str(GameStatus.ACTIVE),
                "group_id": None,
                "$or": [{"creator_id": user_id}, {"player_ids": user_id}],
            },
            limit,
        )

    async def list_active_by_group(self, group_id: str, limit: int = 50) -> list[Game]:
        """Active games attached to a group, newest first."""
        return await self._find_many(
            {"group_id": group_id, "status": str(GameStatus.ACTIVE)}, limit
        )

    async def list_ids_by_status(self, status: GameStatus) -> set[str]:
        cursor = self._collection.find({"status": str(status)}, {"_id": 1})
        return {doc["_id"] async for doc in cursor}

    async def _find_many(self, query: dict[str, Any], limit: int) -> list[Game]:
        cursor = self._collection.find(query).sort("created_at", -1).limit(limit)
        games: list[Game] = []
        async for doc in cursor:
            try:
                games.append(Game.from_mongo(doc))
            except ValidationError as exc:
                logger.warning("Skipping malformed game %s: %s", doc.get("_id"), exc)
        return games

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_atomically(
        self, game_id: str, mutate: Callable[[Game], R]
    ) -> tuple[Game, R]:
        """Run ``mutate`` against the latest snapshot and commit atomically.

        See ``homegame.dal.concurrency.atomic_update`` for the retry
        contract. The committed snapshot is published to listeners.

        Returns:
            ``(committed_game, mutate_result)``.
        """
        game, result = await atomic_update(
            self._collection,
            game_id,
            Game.from_mongo,
            mutate,
            self._max_attempts,
            label="Game",
        )
        await self._publish(game)
        return game, result

    async def _publish(self, game: Game) -> None:
        await self._broker.publish(game_topic(game.id), game)
        await self._broker.publish(ALL_GAMES_TOPIC, game)

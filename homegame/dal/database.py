"""MongoDB database connection management using Motor async driver.

Includes connection lifecycle and index management for the ledger's
collections.
"""

import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from homegame.config import settings

logger = logging.getLogger("homegame.dal.database")

# Global database client and database instances
_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None


async def connect_to_mongo() -> None:
    """Establish connection to MongoDB.

    Called during FastAPI application startup.
    """
    global _client, _database

    _client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000,
        tz_aware=True,
    )
    _database = _client[settings.DATABASE_NAME]

    # Verify connection by pinging the database
    await _client.admin.command("ping")
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection() -> None:
    """Close MongoDB connection.

    Called during FastAPI application shutdown.
    """
    global _client

    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() first."
        )
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes backing the ledger's listing queries.

    This is idempotent -- MongoDB silently ignores indexes that already exist.
    Should be called on application startup after the connection is established.

    Args:
        db: The Motor database instance to create indexes on.
    """
    logger.info("Ensuring indexes for all collections...")

    games = db.games

    # Host's active games, newest first.
    await games.create_index(
        [("creator_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_creator_status_created",
    )

    # Active standalone games a user is seated in (multikey on player_ids).
    await games.create_index(
        [("player_ids", ASCENDING), ("status", ASCENDING), ("group_id", ASCENDING)],
        name="idx_player_status_group",
    )

    # Active games in a group.
    await games.create_index(
        [("group_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_group_status_created",
    )

    invites = db.game_invites

    # Host lists a game's invites.
    await invites.create_index(
        [("game_id", ASCENDING), ("created_at", DESCENDING)],
        name="idx_game_created",
    )

    # Invitee polls pending invites.
    await invites.create_index(
        [("invited_user_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
        name="idx_invitee_status_created",
    )

    logger.info("All indexes ensured successfully.")

"""Health check endpoint."""

import logging

from fastapi import APIRouter

from homegame.config import settings
from homegame.dal.database import get_database
from homegame.dal.subscriptions import ALL_GAMES_TOPIC, get_broker

logger = logging.getLogger("homegame.routes.health")
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    Health check endpoint with MongoDB connectivity test.

    Returns 200 OK even if the database is unavailable; the database status
    is reported in the response body for monitoring purposes.

    Returns:
        dict: Health status, version, database connectivity and the number
        of live game listeners.
    """
    health_response = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "checks": {
            "database": "unknown",
        },
        "listeners": get_broker().listener_count(ALL_GAMES_TOPIC),
    }

    try:
        db = get_database()
        await db.command("ping")
        health_response["checks"]["database"] = "ok"
    except Exception as e:
        logger.warning("Database health check failed: %s", str(e))
        health_response["checks"]["database"] = "down"
        health_response["status"] = "degraded"

    return health_response

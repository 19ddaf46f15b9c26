"""Background task for expiring stale invites.

Completing a game expires its pending invites directly. This sweeper
catches the rest: pending invites whose game has completed by some other
path or no longer exists.
"""

import asyncio
import logging
from typing import Optional

from homegame.config import settings
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.models.common import GameStatus

logger = logging.getLogger("homegame.tasks.invite_expiry")

# Global task handle for cancellation
_sweep_task: Optional[asyncio.Task] = None


async def expire_stale_invites() -> int:
    """Expire pending invites for games that are not active.

    Returns:
        Number of invites expired.
    """
    db = get_database()
    game_dal = GameDAL(db)
    invite_dal = InviteDAL(db)

    pending = await invite_dal.list_pending()
    if not pending:
        return 0

    active_ids = await game_dal.list_ids_by_status(GameStatus.ACTIVE)
    stale_game_ids = {
        invite.game_id for invite in pending if invite.game_id not in active_ids
    }

    expired = 0
    for game_id in sorted(stale_game_ids):
        expired += await invite_dal.expire_pending_for_game(game_id)

    if expired > 0:
        logger.info(
            "Expired %d stale invite(s) across %d game(s)",
            expired,
            len(stale_game_ids),
        )
    return expired


async def _sweep_loop(interval: int) -> None:
    """Background loop that periodically expires stale invites."""
    logger.info("Invite expiry sweeper started (interval=%ds)", interval)

    while True:
        try:
            await asyncio.sleep(interval)
            await expire_stale_invites()
        except asyncio.CancelledError:
            logger.info("Invite expiry sweeper stopped")
            break
        except Exception as e:
            logger.error("Error in invite expiry sweeper: %s", str(e))


def start_invite_sweeper(interval: Optional[int] = None) -> None:
    """Start the background invite expiry task."""
    global _sweep_task

    if _sweep_task is not None and not _sweep_task.done():
        logger.warning("Invite expiry sweeper already running")
        return

    _sweep_task = asyncio.create_task(
        _sweep_loop(interval or settings.INVITE_SWEEP_INTERVAL_SECONDS)
    )
    logger.info("Invite expiry sweeper task created")


def stop_invite_sweeper() -> None:
    """Stop the background invite expiry task."""
    global _sweep_task

    if _sweep_task is not None and not _sweep_task.done():
        _sweep_task.cancel()
        logger.info("Invite expiry sweeper task cancelled")
    _sweep_task = None

"""Real-time game stream.

Endpoint:
    WS /api/games/{game_id}/stream?token=<jwt>

Sends ``{"type": "snapshot", "game": {...}}`` with the current game on
connect and again after every committed change, until the client
disconnects. Browsers cannot set headers on a WebSocket handshake, so the
identity token travels as a query parameter.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from homegame.auth.dependencies import resolve_actor
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.user_events_dal import UserEventDAL
from homegame.errors import Unauthenticated
from homegame.models.game import Game
from homegame.services.game_service import GameService

logger = logging.getLogger("homegame.routes.stream")

router = APIRouter(tags=["Stream"])


def _get_service() -> GameService:
    db = get_database()
    return GameService(GameDAL(db), InviteDAL(db), GroupDAL(db), UserEventDAL(db))


def _snapshot_message(game: Game) -> dict:
    return {"type": "snapshot", "game": game.to_api_dict()}


@router.websocket("/games/{game_id}/stream")
async def game_stream(
    websocket: WebSocket,
    game_id: str,
    token: Optional[str] = Query(None),
) -> None:
    try:
        actor = await resolve_actor(token or "")
    except Unauthenticated as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return

    service = _get_service()
    game = await service.fetch_game(game_id)
    if game is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Game not found")
        return

    await websocket.accept()
    logger.info("Stream opened: game=%s, user=%s", game_id, actor.user_id)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Game] = asyncio.Queue()
    # Commits may be published from another thread's loop.
    registration = service.listen_for_game_updates(
        game_id, lambda snapshot: loop.call_soon_threadsafe(queue.put_nowait, snapshot)
    )

    async def _push() -> None:
        await websocket.send_json(_snapshot_message(game))
        while True:
            snapshot = await queue.get()
            await websocket.send_json(_snapshot_message(snapshot))

    async def _drain() -> None:
        while True:
            await websocket.receive_text()

    tasks = [asyncio.create_task(_push()), asyncio.create_task(_drain())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Stream for game %s failed: %s", game_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        registration.remove()
        logger.info("Stream closed: game=%s, user=%s", game_id, actor.user_id)

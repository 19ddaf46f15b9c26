"""Player route handlers (host only).

Endpoints:
    POST /api/games/{game_id}/players                      -- Seat a user.
    PUT  /api/games/{game_id}/players/{player_id}          -- Overwrite stack and buy-in.
    POST /api/games/{game_id}/players/{player_id}/cash-out -- Direct cash-out.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.user_events_dal import UserEventDAL
from homegame.models.user import Actor
from homegame.services.game_service import GameService
from homegame.services.request_service import RequestService

logger = logging.getLogger("homegame.routes.players")

router = APIRouter(prefix="/games/{game_id}/players", tags=["Players"])


def _get_game_service() -> GameService:
    db = get_database()
    return GameService(GameDAL(db), InviteDAL(db), GroupDAL(db), UserEventDAL(db))


def _get_request_service() -> RequestService:
    db = get_database()
    return RequestService(GameDAL(db), InviteDAL(db))


class AddPlayerBody(BaseModel):
    """Request body for POST /api/games/{game_id}/players."""
    user_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=50)


class PlayerValuesBody(BaseModel):
    """Request body for PUT /api/games/{game_id}/players/{player_id}."""
    current_stack: float = Field(..., allow_inf_nan=False)
    total_buy_in: float = Field(..., allow_inf_nan=False)


class DirectCashOutBody(BaseModel):
    """Request body for POST .../players/{player_id}/cash-out."""
    amount: float = Field(..., allow_inf_nan=False, description="Final stack; may be 0.")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Seat a user in the game",
)
async def add_player(
    body: AddPlayerBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_game_service()
    game = await service.add_player(game_id, actor, body.user_id, body.display_name)
    return game.to_api_dict()


@router.put("/{player_id}", summary="Overwrite a player's stack and buy-in")
async def update_player_values(
    body: PlayerValuesBody,
    game_id: str = Path(...),
    player_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_request_service()
    game = await service.update_player_values(
        game_id, player_id, actor, body.current_stack, body.total_buy_in
    )
    return game.to_api_dict()


@router.post("/{player_id}/cash-out", summary="Cash a player out directly")
async def cash_out_player(
    body: DirectCashOutBody,
    game_id: str = Path(...),
    player_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_request_service()
    game = await service.cash_out_player(game_id, player_id, actor, body.amount)
    return game.to_api_dict()

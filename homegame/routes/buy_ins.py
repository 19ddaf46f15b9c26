"""Buy-in route handlers.

Endpoints:
    POST /api/games/{game_id}/buy-ins                       -- Request a buy-in.
    POST /api/games/{game_id}/buy-ins/host                  -- Host buys in directly.
    POST /api/games/{game_id}/buy-ins/{request_id}/approve  -- Approve (host).
    POST /api/games/{game_id}/buy-ins/{request_id}/decline  -- Decline (host).
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.models.user import Actor
from homegame.services.request_service import RequestService

logger = logging.getLogger("homegame.routes.buy_ins")

router = APIRouter(prefix="/games/{game_id}/buy-ins", tags=["Buy-ins"])


def _get_service() -> RequestService:
    """Build a RequestService wired to the current database."""
    db = get_database()
    return RequestService(GameDAL(db), InviteDAL(db))


class AmountBody(BaseModel):
    """Request body carrying a dollar amount."""
    amount: float = Field(..., allow_inf_nan=False)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Request a buy-in",
)
async def submit_buy_in(
    body: AmountBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    request = await service.submit_buy_in(game_id, actor, body.amount)
    return request.model_dump(mode="json")


@router.post("/host", summary="Host buys in without a request")
async def host_buy_in(
    body: AmountBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.host_buy_in(game_id, actor, body.amount)
    return game.to_api_dict()


@router.post("/{request_id}/approve", summary="Approve a buy-in request")
async def approve_buy_in(
    game_id: str = Path(...),
    request_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.approve_buy_in(game_id, request_id, actor)
    return game.to_api_dict()


@router.post("/{request_id}/decline", summary="Decline a buy-in request")
async def decline_buy_in(
    game_id: str = Path(...),
    request_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.decline_buy_in(game_id, request_id, actor)
    return game.to_api_dict()

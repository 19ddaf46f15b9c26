"""Cash-out route handlers.

Endpoints:
    POST /api/games/{game_id}/cash-outs                       -- Request a cash-out.
    POST /api/games/{game_id}/cash-outs/{request_id}/process  -- Process it (host).
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

logger = logging.getLogger("homegame.routes.cash_outs")

router = APIRouter(prefix="/games/{game_id}/cash-outs", tags=["Cash-outs"])


def _get_service() -> RequestService:
    """Build a RequestService wired to the current database."""
    db = get_database()
    return RequestService(GameDAL(db), InviteDAL(db))


class CashOutBody(BaseModel):
    """Request body for POST /api/games/{game_id}/cash-outs."""
    amount: float = Field(..., allow_inf_nan=False)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Request a cash-out",
)
async def submit_cash_out(
    body: CashOutBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    request = await service.submit_cash_out(game_id, actor, body.amount)
    return request.model_dump(mode="json")


@router.post("/{request_id}/process", summary="Process a cash-out request")
async def process_cash_out(
    game_id: str = Path(...),
    request_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.process_cash_out(game_id, request_id, actor)
    return game.to_api_dict()

"""Settlement route handlers.

Endpoints:
    GET /api/games/{game_id}/settlement -- Stored settlement of a completed
                                           game, or a preview while active.
"""

import logging

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.user_events_dal import UserEventDAL
from homegame.models.game import SettlementTransaction
from homegame.models.user import Actor
from homegame.services.game_service import GameService
from homegame.services.settlement import net_balances, settlement_preview

logger = logging.getLogger("homegame.routes.settlement")

router = APIRouter(prefix="/games/{game_id}", tags=["Settlement"])


def _get_service() -> GameService:
    """Build a GameService wired to the current database."""
    db = get_database()
    return GameService(GameDAL(db), InviteDAL(db), GroupDAL(db), UserEventDAL(db))


# ---------------------------------------------------------------------------
# Pydantic response schemas
# ---------------------------------------------------------------------------

class BalanceEntry(BaseModel):
    """One player's net result."""
    display_name: str
    net_balance: float


class SettlementResponse(BaseModel):
    """Response for GET /api/games/{game_id}/settlement."""
    game_id: str
    status: str
    final: bool
    balances: list[BalanceEntry]
    transactions: list[SettlementTransaction]


@router.get(
    "/settlement",
    response_model=SettlementResponse,
    summary="Who pays whom",
)
async def get_settlement(
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> SettlementResponse:
    """``final`` is true once the game has completed and the transactions
    are the ones stored with it."""
    service = _get_service()
    game = await service.get_game(game_id)

    return SettlementResponse(
        game_id=game.id,
        status=str(game.status),
        final=game.settlement_transactions is not None,
        balances=[
            BalanceEntry(display_name=name, net_balance=balance)
            for name, balance in net_balances(game.players)
        ],
        transactions=settlement_preview(game),
    )

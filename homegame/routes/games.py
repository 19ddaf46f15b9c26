"""Game route handlers.

Endpoints:
    POST /api/games                       -- Create a new game (caller hosts).
    GET  /api/games?scope=hosting|playing -- Caller's active games.
    GET  /api/games/{game_id}             -- Full game snapshot.
    POST /api/games/{game_id}/end         -- End the game and settle (host).
    GET  /api/groups/{group_id}/games     -- Active games in a group.
"""

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.user_events_dal import UserEventDAL
from homegame.models.game import Game
from homegame.models.user import Actor
from homegame.services.game_service import GameService

logger = logging.getLogger("homegame.routes.games")

router = APIRouter(tags=["Games"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_service() -> GameService:
    """Build a GameService wired to the current database."""
    db = get_database()
    return GameService(GameDAL(db), InviteDAL(db), GroupDAL(db), UserEventDAL(db))


def _game_list(games: list[Game]) -> dict[str, Any]:
    return {
        "games": [game.to_api_dict() for game in games],
        "total_count": len(games),
    }


# ---------------------------------------------------------------------------
# Pydantic request schemas
# ---------------------------------------------------------------------------

class SeatBody(BaseModel):
    """A player seated when the game is created."""
    user_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=50)


class CreateGameBody(BaseModel):
    """Request body for POST /api/games."""
    title: str = Field(..., min_length=1, max_length=100)
    initial_players: list[SeatBody] = Field(default_factory=list)
    small_blind: Optional[float] = Field(default=None, ge=0)
    big_blind: Optional[float] = Field(default=None, ge=0)
    group_id: Optional[str] = None
    linked_event_id: Optional[str] = None


# ---------------------------------------------------------------------------
# POST /api/games -- Create a new game
# ---------------------------------------------------------------------------

@router.post(
    "/games",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new game",
)
async def create_game(
    body: CreateGameBody,
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    """Create a new game hosted by the caller."""
    service = _get_service()
    game = await service.create_game(
        title=body.title,
        creator=actor,
        initial_players=[
            Actor(user_id=seat.user_id, display_name=seat.display_name)
            for seat in body.initial_players
        ],
        small_blind=body.small_blind,
        big_blind=body.big_blind,
        group_id=body.group_id,
        linked_event_id=body.linked_event_id,
    )
    return game.to_api_dict()


# ---------------------------------------------------------------------------
# GET /api/games -- Caller's active games
# ---------------------------------------------------------------------------

@router.get("/games", summary="List the caller's active games")
async def list_my_games(
    scope: Literal["hosting", "playing"] = Query("hosting"),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    """``hosting``: games the caller created. ``playing``: standalone games
    the caller is seated in."""
    service = _get_service()
    if scope == "hosting":
        games = await service.list_active_games_created_by(actor.user_id)
    else:
        games = await service.list_active_standalone_games_for_player(actor.user_id)
    return _game_list(games)


# ---------------------------------------------------------------------------
# GET /api/games/{game_id}
# ---------------------------------------------------------------------------

@router.get("/games/{game_id}", summary="Get a game snapshot")
async def get_game(
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    game = await service.get_game(game_id)
    return game.to_api_dict()


# ---------------------------------------------------------------------------
# POST /api/games/{game_id}/end
# ---------------------------------------------------------------------------

@router.post("/games/{game_id}/end", summary="End a game (host only)")
async def end_game(
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    """Cash out every remaining player, settle and complete the game."""
    service = _get_service()
    game = await service.end_game(game_id, actor)
    return game.to_api_dict()


# ---------------------------------------------------------------------------
# GET /api/groups/{group_id}/games
# ---------------------------------------------------------------------------

@router.get("/groups/{group_id}/games", summary="List a group's active games")
async def list_group_games(
    group_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    return _game_list(await service.list_active_games_for_group(group_id))

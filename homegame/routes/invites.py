"""Invite route handlers.

Endpoints:
    POST /api/games/{game_id}/invites        -- Invite a user (host).
    POST /api/games/{game_id}/invites/group  -- Invite a group's members (host).
    GET  /api/games/{game_id}/invites        -- All invites for a game.
    GET  /api/invites/pending                -- Caller's pending invites.
    POST /api/invites/{invite_id}/accept     -- Accept an invite (invitee).
    POST /api/invites/{invite_id}/decline    -- Decline an invite (invitee).
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from homegame.auth.dependencies import get_current_user
from homegame.dal.database import get_database
from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.users_dal import UserDAL
from homegame.models.invite import GameInvite
from homegame.models.user import Actor
from homegame.services.invite_service import InviteService

logger = logging.getLogger("homegame.routes.invites")

router = APIRouter(tags=["Invites"])


def _get_service() -> InviteService:
    """Build an InviteService wired to the current database."""
    db = get_database()
    return InviteService(InviteDAL(db), GameDAL(db), GroupDAL(db), UserDAL(db))


def _invite_list(invites: list[GameInvite]) -> dict[str, Any]:
    return {
        "invites": [invite.to_api_dict() for invite in invites],
        "total_count": len(invites),
    }


class SendInviteBody(BaseModel):
    """Request body for POST /api/games/{game_id}/invites."""
    invited_user_id: str = Field(..., min_length=1)
    display_name: Optional[str] = Field(default=None, max_length=50)
    message: Optional[str] = Field(default=None, max_length=500)


class SendGroupInviteBody(BaseModel):
    """Request body for POST /api/games/{game_id}/invites/group."""
    group_id: str = Field(..., min_length=1)
    group_name: str = Field(..., min_length=1, max_length=100)
    message: Optional[str] = Field(default=None, max_length=500)


@router.post(
    "/games/{game_id}/invites",
    status_code=status.HTTP_201_CREATED,
    summary="Invite a user to the game",
)
async def send_invite(
    body: SendInviteBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    invite = await service.send_invite(
        game_id,
        actor,
        body.invited_user_id,
        display_name=body.display_name,
        message=body.message,
    )
    return invite.to_api_dict()


@router.post(
    "/games/{game_id}/invites/group",
    status_code=status.HTTP_201_CREATED,
    summary="Invite every member of a group",
)
async def send_group_invite(
    body: SendGroupInviteBody,
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    invites = await service.send_group_invite(
        game_id, actor, body.group_id, body.group_name, message=body.message
    )
    return _invite_list(invites)


@router.get("/games/{game_id}/invites", summary="List a game's invites")
async def list_game_invites(
    game_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    return _invite_list(await service.list_game_invites(game_id))


@router.get("/invites/pending", summary="The caller's pending invites")
async def list_pending_invites(
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    return _invite_list(await service.list_pending_invites(actor.user_id))


@router.post("/invites/{invite_id}/accept", summary="Accept an invite")
async def accept_invite(
    invite_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    invite = await service.accept_invite(invite_id, actor)
    return invite.to_api_dict()


@router.post("/invites/{invite_id}/decline", summary="Decline an invite")
async def decline_invite(
    invite_id: str = Path(...),
    actor: Actor = Depends(get_current_user),
) -> dict[str, Any]:
    service = _get_service()
    invite = await service.decline_invite(invite_id, actor)
    return invite.to_api_dict()

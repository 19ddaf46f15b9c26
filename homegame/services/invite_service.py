"""Game invite business logic.

The host invites individual users or a whole group; invitees accept or
decline. Accepting does not seat anyone: the invitee still joins through a
buy-in request. Invites for a game that has ended are expired.
"""

import inspect
import logging
from typing import Any, Callable, Optional

from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.subscriptions import (
    ListenerRegistration,
    invites_topic,
    listen_and_refresh,
)
from homegame.dal.users_dal import UserDAL
from homegame.errors import InvalidState, NotFound, Unauthorized
from homegame.models.common import InviteStatus
from homegame.models.game import Game
from homegame.models.invite import GameInvite
from homegame.models.user import Actor
from homegame.services.game_service import require_host

logger = logging.getLogger("homegame.services.invite")


class InviteService:
    """Service layer for game invites."""

    def __init__(
        self,
        invite_dal: InviteDAL,
        game_dal: GameDAL,
        group_dal: GroupDAL,
        user_dal: UserDAL,
    ) -> None:
        self._invite_dal = invite_dal
        self._game_dal = game_dal
        self._group_dal = group_dal
        self._user_dal = user_dal

    async def _get_open_game(self, game_id: str, actor: Actor) -> Game:
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise NotFound("Game not found")
        require_host(game, actor)
        if not game.is_active:
            raise InvalidState("Cannot invite to completed games")
        return game

    async def _get_own_invite(self, invite_id: str, actor: Actor) -> GameInvite:
        invite = await self._invite_dal.get_by_id(invite_id)
        if invite is None:
            raise NotFound("Invite not found")
        if invite.invited_user_id != actor.user_id:
            raise Unauthorized("Not authorized to respond to this invite")
        if not invite.is_pending:
            raise InvalidState("Invite is no longer pending")
        return invite

    async def _pending_invitee_ids(self, game_id: str) -> set[str]:
        return {
            invite.invited_user_id
            for invite in await self._invite_dal.list_by_game(game_id)
            if invite.is_pending
        }

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_invite(
        self,
        game_id: str,
        actor: Actor,
        invited_user_id: str,
        display_name: Optional[str] = None,
        message: Optional[str] = None,
    ) -> GameInvite:
        """Invite one user to an active game.

        Raises:
            NotFound: The game does not exist.
            Unauthorized: ``actor`` is not the host.
            InvalidState: The game ended, the user already has a pending
                invite, or the user is already seated.
        """
        game = await self._get_open_game(game_id, actor)

        if invited_user_id in await self._pending_invitee_ids(game_id):
            raise InvalidState("User already has a pending invite")
        if game.find_player_by_user(invited_user_id) is not None:
            raise InvalidState("User is already playing in this game")

        invite = GameInvite(
            game_id=game.id,
            game_title=game.title,
            host_id=actor.user_id,
            host_name=game.creator_name,
            invited_user_id=invited_user_id,
            invited_user_display_name=(
                display_name
                or await self._user_dal.resolve_display_name(invited_user_id)
            ),
            message=message,
        )
        await self._invite_dal.create(invite)
        logger.info("Invite sent: game=%s, user=%s", game_id, invited_user_id)
        return invite

    async def send_group_invite(
        self,
        game_id: str,
        actor: Actor,
        group_id: str,
        group_name: str,
        message: Optional[str] = None,
    ) -> list[GameInvite]:
        """Invite every member of a group who is not already in or invited.

        Returns:
            The invites created (possibly none).
        """
        game = await self._get_open_game(game_id, actor)

        member_ids = await self._group_dal.get_member_ids(group_id)
        if member_ids is None:
            raise NotFound("Group not found")

        skip = await self._pending_invitee_ids(game_id)
        skip.update(game.player_ids)
        skip.add(actor.user_id)

        created: list[GameInvite] = []
        for member_id in member_ids:
            if member_id in skip:
                continue
            invite = GameInvite(
                game_id=game.id,
                game_title=game.title,
                host_id=actor.user_id,
                host_name=game.creator_name,
                invited_user_id=member_id,
                invited_user_display_name=await self._user_dal.resolve_display_name(member_id),
                invited_group_id=group_id,
                invited_group_name=group_name,
                message=message,
            )
            await self._invite_dal.create(invite)
            created.append(invite)
            skip.add(member_id)

        logger.info(
            "Group invite sent: game=%s, group=%s, invites=%d",
            game_id,
            group_id,
            len(created),
        )
        return created

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def list_game_invites(self, game_id: str) -> list[GameInvite]:
        return await self._invite_dal.list_by_game(game_id)

    async def list_pending_invites(self, user_id: str) -> list[GameInvite]:
        """Pending invites addressed to the user, for games still running."""
        invites = await self._invite_dal.list_pending_by_user(user_id)
        active: dict[str, bool] = {}
        result = []
        for invite in invites:
            if invite.game_id not in active:
                game = await self._game_dal.get_by_id(invite.game_id)
                active[invite.game_id] = game is not None and game.is_active
            if active[invite.game_id]:
                result.append(invite)
        return result

    # ------------------------------------------------------------------
    # Responding
    # ------------------------------------------------------------------

    async def accept_invite(self, invite_id: str, actor: Actor) -> GameInvite:
        """Accept a pending invite to a game that is still active."""
        invite = await self._get_own_invite(invite_id, actor)

        game = await self._game_dal.get_by_id(invite.game_id)
        if game is None or not game.is_active:
            raise InvalidState("Game is no longer active")

        updated = await self._invite_dal.respond(invite_id, InviteStatus.ACCEPTED)
        if updated is None:
            raise InvalidState("Invite is no longer pending")
        logger.info("Invite %s accepted by %s", invite_id, actor.user_id)
        return updated

    async def decline_invite(self, invite_id: str, actor: Actor) -> GameInvite:
        await self._get_own_invite(invite_id, actor)

        updated = await self._invite_dal.respond(invite_id, InviteStatus.DECLINED)
        if updated is None:
            raise InvalidState("Invite is no longer pending")
        logger.info("Invite %s declined by %s", invite_id, actor.user_id)
        return updated

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    async def expire_invites_for_game(self, game_id: str) -> int:
        return await self._invite_dal.expire_pending_for_game(game_id)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def listen_for_pending_invites(
        self, user_id: str, on_change: Callable[[list[GameInvite]], Any]
    ) -> ListenerRegistration:
        """Deliver the user's pending invites now and after every change."""

        async def _deliver() -> None:
            invites = await self._invite_dal.list_pending_by_user(user_id)
            result = on_change(invites)
            if inspect.isawaitable(result):
                await result

        return await listen_and_refresh(
            self._invite_dal.broker, invites_topic(user_id), _deliver
        )

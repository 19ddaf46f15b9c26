"""Game business logic service.

Handles game creation, seating, ending a game, the listing queries and the
real-time subscriptions. Sits between route handlers and the DAL.
"""

import inspect
import logging
from typing import Any, Callable, Optional

from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.subscriptions import (
    ALL_GAMES_TOPIC,
    ListenerRegistration,
    game_topic,
    listen_and_refresh,
)
from homegame.dal.user_events_dal import UserEventDAL
from homegame.errors import InvalidState, NotFound, Unauthorized
from homegame.models.common import utc_now
from homegame.models.game import Game
from homegame.models.user import Actor
from homegame.services import event_log
from homegame.services.settlement import compute_settlement

logger = logging.getLogger("homegame.services.game")


def require_host(game: Game, actor: Actor) -> None:
    """Raise Unauthorized unless ``actor`` created ``game``."""
    if game.creator_id != actor.user_id:
        raise Unauthorized("Only the host can perform this action")


def complete_game(game: Game, actor: Actor) -> None:
    """Close out an active game in place.

    Every still-active player is cashed out at their current stack, the
    ``gameEnded`` entry is appended and the settlement is computed from the
    final roster. Must run inside an atomic update.
    """
    game.ensure_active()
    now = utc_now()
    for player in game.active_players():
        player.cash_out(player.current_stack, at=now)
        game.append_event(
            event_log.cashed_out_at_game_end(
                player.user_id, player.display_name, player.current_stack
            )
        )
    game.append_event(event_log.game_ended(actor.user_id, actor.display_name, game.title))
    game.mark_completed(compute_settlement(game.players), at=now)


class GameService:
    """Service layer for game-related operations."""

    def __init__(
        self,
        game_dal: GameDAL,
        invite_dal: InviteDAL,
        group_dal: GroupDAL,
        user_event_dal: UserEventDAL,
    ) -> None:
        self._game_dal = game_dal
        self._invite_dal = invite_dal
        self._group_dal = group_dal
        self._user_event_dal = user_event_dal

    # ------------------------------------------------------------------
    # Create game
    # ------------------------------------------------------------------

    async def create_game(
        self,
        title: str,
        creator: Actor,
        initial_players: Optional[list[Actor]] = None,
        small_blind: Optional[float] = None,
        big_blind: Optional[float] = None,
        group_id: Optional[str] = None,
        linked_event_id: Optional[str] = None,
    ) -> Game:
        """Create a new active game hosted by ``creator``.

        The creator is seated alone when no initial players are given;
        otherwise each initial player gets a zero-stack seat.

        Raises:
            InvalidState: The creator already hosts an active game.
        """
        title = title.strip()
        if not title:
            raise InvalidState("Game title is required")

        # Point query, not a transaction: two concurrent creates by the same
        # host can both pass this check.
        hosting = await self._game_dal.list_active_by_creator(creator.user_id, limit=1)
        if hosting:
            raise InvalidState(
                f"You already have an active game: '{hosting[0].title}'. "
                "End it before starting a new one."
            )

        game = Game(
            title=title,
            creator_id=creator.user_id,
            creator_name=creator.display_name,
            group_id=group_id,
            linked_event_id=linked_event_id,
            small_blind=small_blind,
            big_blind=big_blind,
        )
        seats = initial_players or [creator]
        for seat in seats:
            if game.find_player_by_user(seat.user_id) is None:
                game.seat_player(seat.user_id, seat.display_name, at=game.created_at)
        game.append_event(event_log.game_created(creator.user_id, creator.display_name, title))

        await self._game_dal.create(game)
        if group_id is not None:
            await self._group_dal.add_game(group_id, game.id)

        logger.info(
            "Game created: id=%s, title=%s, creator=%s, players=%d",
            game.id,
            game.title,
            creator.user_id,
            len(game.players),
        )
        return game

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_game(self, game_id: str) -> Optional[Game]:
        return await self._game_dal.get_by_id(game_id)

    async def get_game(self, game_id: str) -> Game:
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise NotFound("Game not found")
        return game

    async def list_active_games_created_by(self, user_id: str) -> list[Game]:
        return await self._game_dal.list_active_by_creator(user_id)

    async def list_active_standalone_games_for_player(self, user_id: str) -> list[Game]:
        return await self._game_dal.list_active_standalone_by_player(user_id)

    async def list_active_games_for_group(self, group_id: str) -> list[Game]:
        return await self._game_dal.list_active_by_group(group_id)

    # ------------------------------------------------------------------
    # Seating
    # ------------------------------------------------------------------

    async def add_player(
        self, game_id: str, actor: Actor, user_id: str, display_name: str
    ) -> Game:
        """Seat ``user_id`` with an empty stack. No-op if already seated."""
        require_host(await self.get_game(game_id), actor)

        def _seat(game: Game) -> bool:
            game.ensure_active()
            if game.find_player_by_user(user_id) is not None:
                return False
            game.seat_player(user_id, display_name)
            game.append_event(event_log.player_joined(user_id, display_name))
            return True

        game, seated = await self._game_dal.update_atomically(game_id, _seat)
        if seated:
            logger.info("Player %s seated in game %s", user_id, game_id)
        return game

    # ------------------------------------------------------------------
    # End game
    # ------------------------------------------------------------------

    async def end_game(self, game_id: str, actor: Actor) -> Game:
        """End the game, cash out everyone still playing and settle.

        Raises:
            NotFound: The game does not exist.
            Unauthorized: ``actor`` is not the host.
            InvalidState: The game has already ended.
        """
        require_host(await self.get_game(game_id), actor)

        game, _ = await self._game_dal.update_atomically(
            game_id, lambda g: complete_game(g, actor)
        )
        logger.info(
            "Game ended: id=%s, transactions=%d",
            game.id,
            len(game.settlement_transactions or []),
        )
        await self.after_completion(game)
        return game

    async def after_completion(self, game: Game) -> None:
        """Side effects of a committed completion outside the game document."""
        if game.linked_event_id is not None:
            await self._user_event_dal.mark_completed(game.linked_event_id)
        await self._invite_dal.expire_pending_for_game(game.id)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def listen_for_game_updates(
        self, game_id: str, on_change: Callable[[Game], Any]
    ) -> ListenerRegistration:
        """Call ``on_change`` with every committed snapshot of the game."""
        return self._game_dal.broker.listen(game_topic(game_id), on_change)

    async def listen_for_active_standalone_game(
        self, user_id: str, on_change: Callable[[Optional[Game]], Any]
    ) -> ListenerRegistration:
        """Track the user's current standalone game.

        ``on_change`` receives the newest active standalone game the user
        hosts or plays in (or None) right away, and again after every commit
        to a game that was or now is relevant to them.
        """
        last_seen: dict[str, Optional[str]] = {"id": None}

        async def _deliver() -> None:
            games = await self._game_dal.list_active_standalone_for_user(user_id, limit=1)
            current = games[0] if games else None
            last_seen["id"] = current.id if current else None
            result = on_change(current)
            if inspect.isawaitable(result):
                await result

        def _wants(game: Game) -> bool:
            relevant = game.is_standalone and (
                game.creator_id == user_id or user_id in game.player_ids
            )
            return relevant or game.id == last_seen["id"]

        return await listen_and_refresh(
            self._game_dal.broker, ALL_GAMES_TOPIC, _deliver, _wants
        )

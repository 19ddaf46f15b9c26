"""Buy-in and cash-out workflow service.

Players submit requests; the host approves, declines or processes them.
Every mutation runs inside ``GameDAL.update_atomically`` and re-checks its
preconditions against the snapshot it is about to write, so a request that
two hosts resolve at once is applied exactly once and the loser gets
``InvalidState``.
"""

import logging
import math

from homegame.dal.games_dal import GameDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.errors import InvalidAmount, NotFound
from homegame.models.common import utc_now
from homegame.models.game import Game
from homegame.models.ledger_request import BuyInRequest, CashOutRequest
from homegame.models.user import Actor
from homegame.services import event_log
from homegame.services.game_service import complete_game, require_host

logger = logging.getLogger("homegame.services.request")


def _require_finite(amount: float, what: str) -> None:
    if not math.isfinite(amount):
        raise InvalidAmount(f"{what} amount must be a finite number")


def _require_positive(amount: float, what: str) -> None:
    _require_finite(amount, what)
    if amount <= 0:
        raise InvalidAmount(f"{what} amount must be greater than zero")


def _require_buy_in(game: Game, request_id: str) -> BuyInRequest:
    request = game.find_buy_in(request_id)
    if request is None:
        raise NotFound("Buy-in request not found")
    return request


def _require_cash_out(game: Game, request_id: str) -> CashOutRequest:
    request = game.find_cash_out(request_id)
    if request is None:
        raise NotFound("Cash-out request not found")
    return request


class RequestService:
    """Service layer for the buy-in / cash-out request workflow."""

    def __init__(self, game_dal: GameDAL, invite_dal: InviteDAL) -> None:
        self._game_dal = game_dal
        self._invite_dal = invite_dal

    async def _get_game(self, game_id: str) -> Game:
        game = await self._game_dal.get_by_id(game_id)
        if game is None:
            raise NotFound("Game not found")
        return game

    async def _require_host(self, game_id: str, actor: Actor) -> None:
        # creator_id never changes, so a plain read is enough for this check.
        require_host(await self._get_game(game_id), actor)

    # ------------------------------------------------------------------
    # Buy-ins
    # ------------------------------------------------------------------

    async def submit_buy_in(
        self, game_id: str, actor: Actor, amount: float
    ) -> BuyInRequest:
        """Queue a buy-in request for the host to approve."""
        _require_positive(amount, "Buy-in")

        def _submit(game: Game) -> BuyInRequest:
            game.ensure_active()
            request = BuyInRequest(
                user_id=actor.user_id,
                display_name=actor.display_name,
                amount=amount,
            )
            game.buy_in_requests.append(request)
            game.append_event(
                event_log.buy_in_requested(actor.user_id, actor.display_name, amount)
            )
            return request

        _, request = await self._game_dal.update_atomically(game_id, _submit)
        logger.info(
            "Buy-in requested: game=%s, user=%s, amount=%s",
            game_id,
            actor.user_id,
            amount,
        )
        return request

    async def approve_buy_in(self, game_id: str, request_id: str, actor: Actor) -> Game:
        """Approve a pending buy-in and credit the player's stack and buy-in.

        A user with no seat yet is seated with the approved amount; a
        cashed-out player is reactivated by the rebuy.

        Raises:
            NotFound: Game or request does not exist.
            Unauthorized: ``actor`` is not the host.
            InvalidState: The request was already resolved, or the game ended.
        """
        await self._require_host(game_id, actor)

        def _approve(game: Game) -> None:
            game.ensure_active()
            request = _require_buy_in(game, request_id)
            request.approve()
            game.credit_buy_in(request.user_id, request.display_name, request.amount)
            game.append_event(
                event_log.buy_in_approved(
                    request.user_id, request.display_name, request.amount
                )
            )

        game, _ = await self._game_dal.update_atomically(game_id, _approve)
        logger.info("Buy-in %s approved in game %s", request_id, game_id)
        return game

    async def decline_buy_in(self, game_id: str, request_id: str, actor: Actor) -> Game:
        """Reject a pending buy-in. Balances are untouched."""
        await self._require_host(game_id, actor)

        def _decline(game: Game) -> None:
            game.ensure_active()
            request = _require_buy_in(game, request_id)
            request.reject()
            game.append_event(
                event_log.buy_in_declined(
                    request.user_id, request.display_name, request.amount
                )
            )

        game, _ = await self._game_dal.update_atomically(game_id, _decline)
        logger.info("Buy-in %s declined in game %s", request_id, game_id)
        return game

    async def host_buy_in(self, game_id: str, actor: Actor, amount: float) -> Game:
        """The host buys chips for themselves without a request."""
        _require_positive(amount, "Buy-in")
        await self._require_host(game_id, actor)

        def _buy_in(game: Game) -> None:
            game.ensure_active()
            game.credit_buy_in(actor.user_id, actor.display_name, amount)
            game.append_event(
                event_log.host_buy_in(actor.user_id, actor.display_name, amount)
            )

        game, _ = await self._game_dal.update_atomically(game_id, _buy_in)
        logger.info("Host buy-in: game=%s, amount=%s", game_id, amount)
        return game

    # ------------------------------------------------------------------
    # Cash-outs
    # ------------------------------------------------------------------

    async def submit_cash_out(
        self, game_id: str, actor: Actor, amount: float
    ) -> CashOutRequest:
        """Queue a cash-out claim. Any finite amount may be claimed; the host
        validates it when processing.

        Raises:
            NotFound: The actor is not an active player.
            InvalidAmount: The amount is not a finite number.
        """
        _require_finite(amount, "Cash-out")

        def _submit(game: Game) -> CashOutRequest:
            game.ensure_active()
            player = game.find_player_by_user(actor.user_id)
            if player is None or not player.is_active:
                raise NotFound("You are not an active player in this game")
            request = CashOutRequest(
                user_id=player.user_id,
                display_name=player.display_name,
                amount=amount,
            )
            game.cash_out_requests.append(request)
            game.append_event(
                event_log.cash_out_requested(player.user_id, player.display_name, amount)
            )
            return request

        _, request = await self._game_dal.update_atomically(game_id, _submit)
        logger.info(
            "Cash-out requested: game=%s, user=%s, amount=%s",
            game_id,
            actor.user_id,
            amount,
        )
        return request

    async def process_cash_out(self, game_id: str, request_id: str, actor: Actor) -> Game:
        """Settle a cash-out request: the player's stack becomes the amount.

        A game with no linked event completes by itself once the last active
        player is cashed out; a linked game stays active until the host ends
        it.

        A player who is already cashed out, by an earlier request or a direct
        cash-out, keeps that status and takes the claimed amount as their
        stack.

        Raises:
            NotFound: Game, request or player does not exist.
            Unauthorized: ``actor`` is not the host.
            InvalidAmount: The requested amount is not positive.
            InvalidState: The request was already processed, or the game ended.
        """
        await self._require_host(game_id, actor)

        def _process(game: Game) -> bool:
            game.ensure_active()
            request = _require_cash_out(game, request_id)
            _require_positive(request.amount, "Cash-out")
            player = game.find_player_by_user(request.user_id)
            if player is None:
                raise NotFound("Player not found")

            now = utc_now()
            request.process(at=now)
            if player.is_active:
                player.cash_out(request.amount, at=now)
            else:
                # Already out: the latest claim replaces the recorded stack.
                player.current_stack = request.amount
            game.append_event(
                event_log.cashed_out(request.user_id, request.display_name, request.amount)
            )

            if game.linked_event_id is None and game.players and not game.active_players():
                complete_game(game, Actor(user_id=actor.user_id, display_name=game.creator_name))
                return True
            return False

        game, completed = await self._game_dal.update_atomically(game_id, _process)
        logger.info("Cash-out %s processed in game %s", request_id, game_id)
        if completed:
            logger.info("Game %s completed: every player has cashed out", game_id)
            await self._invite_dal.expire_pending_for_game(game_id)
        return game

    # ------------------------------------------------------------------
    # Host edits
    # ------------------------------------------------------------------

    async def update_player_values(
        self,
        game_id: str,
        player_id: str,
        actor: Actor,
        current_stack: float,
        total_buy_in: float,
    ) -> Game:
        """Overwrite a player's stack and buy-in totals."""
        _require_finite(current_stack, "Stack")
        _require_finite(total_buy_in, "Buy-in")
        if current_stack < 0 or total_buy_in < 0:
            raise InvalidAmount("Stack and buy-in cannot be negative")
        await self._require_host(game_id, actor)

        def _update(game: Game) -> None:
            game.ensure_active()
            player = game.require_player(player_id)
            old_stack, old_buy_in = player.current_stack, player.total_buy_in
            player.current_stack = current_stack
            player.total_buy_in = total_buy_in
            game.append_event(
                event_log.player_updated(
                    player.user_id,
                    player.display_name,
                    old_stack,
                    current_stack,
                    old_buy_in,
                    total_buy_in,
                )
            )

        game, _ = await self._game_dal.update_atomically(game_id, _update)
        logger.info("Player %s values updated in game %s", player_id, game_id)
        return game

    async def cash_out_player(
        self,
        game_id: str,
        player_id: str,
        actor: Actor,
        amount: float,
    ) -> Game:
        """Cash a player out directly, without a request. ``amount`` may be 0."""
        _require_finite(amount, "Cash-out")
        if amount < 0:
            raise InvalidAmount("Cash-out amount cannot be negative")
        await self._require_host(game_id, actor)

        def _cash_out(game: Game) -> None:
            game.ensure_active()
            player = game.require_player(player_id)
            player.cash_out(amount)
            game.append_event(
                event_log.cashed_out(player.user_id, player.display_name, amount)
            )

        game, _ = await self._game_dal.update_atomically(game_id, _cash_out)
        logger.info("Player %s cashed out directly in game %s", player_id, game_id)
        return game

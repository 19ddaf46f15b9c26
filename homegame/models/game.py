"""Game aggregate for the home-game ledger.

A Game document embeds its players, request queues, audit history and
(once completed) settlement instructions. The whole document is the unit of
concurrency control: nested lists are only changed as part of a full-game
atomic update (see ``homegame.dal.concurrency``).
"""

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field

from homegame.errors import InvalidState, NotFound
from homegame.models.common import (
    GameStatus,
    PlayerStatus,
    UtcDatetime,
    new_id,
    parse_each,
    utc_now,
)
from homegame.models.events import GameEvent, game_event_adapter
from homegame.models.ledger_request import BuyInRequest, CashOutRequest
from homegame.models.player import Player

logger = logging.getLogger("homegame.models.game")


class SettlementTransaction(BaseModel):
    """One pairwise payment instruction: ``from_player`` pays ``to_player``."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    from_player: str
    to_player: str
    amount: float = Field(gt=0)
    index: int = Field(ge=1)


_LIST_ADAPTERS: dict[str, TypeAdapter] = {
    "players": TypeAdapter(Player),
    "buy_in_requests": TypeAdapter(BuyInRequest),
    "cash_out_requests": TypeAdapter(CashOutRequest),
    "game_history": game_event_adapter,
}
_SETTLEMENT_ADAPTER = TypeAdapter(SettlementTransaction)


class Game(BaseModel):
    """A live or completed cash session."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    title: str
    created_at: UtcDatetime = Field(default_factory=utc_now)
    creator_id: str
    creator_name: str
    group_id: Optional[str] = None
    linked_event_id: Optional[str] = None
    status: GameStatus = GameStatus.ACTIVE
    players: list[Player] = Field(default_factory=list)
    buy_in_requests: list[BuyInRequest] = Field(default_factory=list)
    cash_out_requests: list[CashOutRequest] = Field(default_factory=list)
    game_history: list[GameEvent] = Field(default_factory=list)
    settlement_transactions: Optional[list[SettlementTransaction]] = None
    small_blind: Optional[float] = None
    big_blind: Optional[float] = None
    completed_at: Optional[UtcDatetime] = None
    version: int = 0

    @computed_field
    @property
    def player_ids(self) -> list[str]:
        """User ids of everyone seated, in roster order.

        Always derived from ``players`` so the two can never drift; it is
        stored on the document only so membership can be queried.
        """
        return list(dict.fromkeys(p.user_id for p in self.players))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_mongo(cls, doc: dict[str, Any]) -> "Game":
        """Decode a stored document, skipping malformed list entries.

        Scalar fields are validated strictly (a game without a title or
        creator is unusable); each entry in the embedded lists is decoded on
        its own and dropped with a warning if it does not validate.
        """
        data = dict(doc)
        game_id = str(data.get("_id", data.get("id", "")))
        lists = {
            name: parse_each(adapter, data.pop(name, None), name, game_id)
            for name, adapter in _LIST_ADAPTERS.items()
        }
        raw_settlement = data.pop("settlement_transactions", None)
        data.pop("player_ids", None)

        game = cls.model_validate(data)
        for name, items in lists.items():
            setattr(game, name, items)
        if raw_settlement is not None:
            game.settlement_transactions = parse_each(
                _SETTLEMENT_ADAPTER,
                raw_settlement,
                "settlement_transactions",
                game_id,
            )
        return game

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB document keyed by ``_id``."""
        return self.model_dump(by_alias=True, mode="python")

    def to_api_dict(self) -> dict:
        """JSON-safe representation returned by the HTTP layer."""
        return self.model_dump(mode="json")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == GameStatus.ACTIVE

    @property
    def is_standalone(self) -> bool:
        return self.group_id is None

    def find_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def find_player_by_user(self, user_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.user_id == user_id), None)

    def require_player(self, player_id: str) -> Player:
        player = self.find_player(player_id)
        if player is None:
            raise NotFound("Player not found")
        return player

    def find_buy_in(self, request_id: str) -> Optional[BuyInRequest]:
        return next((r for r in self.buy_in_requests if r.id == request_id), None)

    def find_cash_out(self, request_id: str) -> Optional[CashOutRequest]:
        return next((r for r in self.cash_out_requests if r.id == request_id), None)

    def active_players(self) -> list[Player]:
        return [p for p in self.players if p.status == PlayerStatus.ACTIVE]

    def pending_buy_ins(self) -> list[BuyInRequest]:
        return [r for r in self.buy_in_requests if r.is_pending]

    def pending_cash_outs(self) -> list[CashOutRequest]:
        return [r for r in self.cash_out_requests if r.is_pending]

    # ------------------------------------------------------------------
    # Mutations (only ever called inside an atomic update)
    # ------------------------------------------------------------------

    def ensure_active(self) -> None:
        if not self.is_active:
            raise InvalidState(f"Game '{self.title}' has already ended")

    def append_event(self, event: GameEvent) -> None:
        self.game_history.append(event)

    def seat_player(
        self,
        user_id: str,
        display_name: str,
        amount: float = 0.0,
        at: Optional[datetime] = None,
    ) -> Player:
        """Add a new active player with ``amount`` as stack and buy-in."""
        player = Player(
            user_id=user_id,
            display_name=display_name,
            current_stack=amount,
            total_buy_in=amount,
            joined_at=at or utc_now(),
        )
        self.players.append(player)
        return player

    def credit_buy_in(self, user_id: str, display_name: str, amount: float) -> Player:
        """Apply an approved buy-in: rebuy an existing seat or open a new one."""
        player = self.find_player_by_user(user_id)
        if player is None:
            return self.seat_player(user_id, display_name, amount)
        player.rebuy(amount)
        return player

    def mark_completed(
        self,
        settlement: list[SettlementTransaction],
        at: Optional[datetime] = None,
    ) -> None:
        """Transition to ``completed``. There is no way back."""
        self.ensure_active()
        self.status = GameStatus.COMPLETED
        self.settlement_transactions = list(settlement)
        self.completed_at = at or utc_now()

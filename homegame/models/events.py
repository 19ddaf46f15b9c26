"""Audit trail entries for a game's history.

Each event kind is its own model carrying only the fields relevant to it;
``GameEvent`` is the tagged union discriminated by ``event_type``. Events are
frozen once built: the history is append-only.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from homegame.models.common import UtcDatetime, new_id, utc_now


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    timestamp: UtcDatetime = Field(default_factory=utc_now)
    user_id: str
    user_name: str
    description: str


class GameCreatedEvent(_EventBase):
    event_type: Literal["gameCreated"] = "gameCreated"


class GameEndedEvent(_EventBase):
    event_type: Literal["gameEnded"] = "gameEnded"


class PlayerJoinedEvent(_EventBase):
    event_type: Literal["playerJoined"] = "playerJoined"


class PlayerLeftEvent(_EventBase):
    event_type: Literal["playerLeft"] = "playerLeft"


class BuyInEvent(_EventBase):
    """A buy-in was requested, approved, declined or applied by the host."""

    event_type: Literal["buyIn"] = "buyIn"
    amount: float


class CashOutEvent(_EventBase):
    """A cash-out was requested or applied."""

    event_type: Literal["cashOut"] = "cashOut"
    amount: float


class PlayerUpdatedEvent(_EventBase):
    """The host overwrote a player's stack and buy-in by hand."""

    event_type: Literal["playerUpdated"] = "playerUpdated"
    old_stack: float
    new_stack: float
    old_buy_in: float
    new_buy_in: float


GameEvent = Annotated[
    Union[
        GameCreatedEvent,
        GameEndedEvent,
        PlayerJoinedEvent,
        PlayerLeftEvent,
        BuyInEvent,
        CashOutEvent,
        PlayerUpdatedEvent,
    ],
    Field(discriminator="event_type"),
]

game_event_adapter: TypeAdapter = TypeAdapter(GameEvent)

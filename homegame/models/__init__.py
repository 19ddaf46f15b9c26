"""Pydantic models for the home-game ledger."""

from homegame.models.common import (
    BuyInStatus,
    CashOutStatus,
    EventType,
    GameStatus,
    InviteStatus,
    PlayerStatus,
)
from homegame.models.events import (
    BuyInEvent,
    CashOutEvent,
    GameCreatedEvent,
    GameEndedEvent,
    GameEvent,
    PlayerJoinedEvent,
    PlayerLeftEvent,
    PlayerUpdatedEvent,
)
from homegame.models.game import Game, SettlementTransaction
from homegame.models.invite import GameInvite
from homegame.models.ledger_request import BuyInRequest, CashOutRequest
from homegame.models.player import Player
from homegame.models.user import Actor

__all__ = [
    # Enums
    "GameStatus",
    "PlayerStatus",
    "BuyInStatus",
    "CashOutStatus",
    "EventType",
    "InviteStatus",
    # Events
    "GameEvent",
    "GameCreatedEvent",
    "GameEndedEvent",
    "PlayerJoinedEvent",
    "PlayerLeftEvent",
    "BuyInEvent",
    "CashOutEvent",
    "PlayerUpdatedEvent",
    # Aggregate
    "Game",
    "Player",
    "BuyInRequest",
    "CashOutRequest",
    "SettlementTransaction",
    # Invites
    "GameInvite",
    # Identity
    "Actor",
]

"""Builders for game history entries.

One function per narrative the audit trail records. Each returns a new,
frozen event with a fresh id and timestamp; appending it to the game is the
caller's job (always inside the same atomic update as the change it
describes).
"""

from homegame.models.events import (
    BuyInEvent,
    CashOutEvent,
    GameCreatedEvent,
    GameEndedEvent,
    PlayerJoinedEvent,
    PlayerUpdatedEvent,
)


def _dollars(amount: float) -> str:
    return f"${int(amount)}"


def game_created(user_id: str, user_name: str, title: str) -> GameCreatedEvent:
    return GameCreatedEvent(
        user_id=user_id,
        user_name=user_name,
        description=f"Game created: {title}",
    )


def game_ended(user_id: str, user_name: str, title: str) -> GameEndedEvent:
    return GameEndedEvent(
        user_id=user_id,
        user_name=user_name,
        description=f"Game ended: {title}",
    )


def player_joined(user_id: str, user_name: str) -> PlayerJoinedEvent:
    return PlayerJoinedEvent(
        user_id=user_id,
        user_name=user_name,
        description=f"{user_name} joined the game.",
    )


def buy_in_requested(user_id: str, user_name: str, amount: float) -> BuyInEvent:
    return BuyInEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} requested buy-in of {_dollars(amount)}",
    )


def buy_in_approved(user_id: str, user_name: str, amount: float) -> BuyInEvent:
    return BuyInEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} bought in for {_dollars(amount)}",
    )


def buy_in_declined(user_id: str, user_name: str, amount: float) -> BuyInEvent:
    return BuyInEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name}'s buy-in request of {_dollars(amount)} was declined",
    )


def host_buy_in(user_id: str, user_name: str, amount: float) -> BuyInEvent:
    return BuyInEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} (host) bought in for {_dollars(amount)}",
    )


def cash_out_requested(user_id: str, user_name: str, amount: float) -> CashOutEvent:
    return CashOutEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} requested cash-out of {_dollars(amount)}",
    )


def cashed_out(user_id: str, user_name: str, amount: float) -> CashOutEvent:
    return CashOutEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} cashed out {_dollars(amount)}",
    )


def cashed_out_at_game_end(user_id: str, user_name: str, amount: float) -> CashOutEvent:
    return CashOutEvent(
        user_id=user_id,
        user_name=user_name,
        amount=amount,
        description=f"{user_name} cashed out {_dollars(amount)} (game ended)",
    )


def player_updated(
    user_id: str,
    user_name: str,
    old_stack: float,
    new_stack: float,
    old_buy_in: float,
    new_buy_in: float,
) -> PlayerUpdatedEvent:
    return PlayerUpdatedEvent(
        user_id=user_id,
        user_name=user_name,
        old_stack=old_stack,
        new_stack=new_stack,
        old_buy_in=old_buy_in,
        new_buy_in=new_buy_in,
        description=(
            f"{user_name}'s values updated: "
            f"Stack {_dollars(old_stack)} → {_dollars(new_stack)}, "
            f"Buy-in {_dollars(old_buy_in)} → {_dollars(new_buy_in)}"
        ),
    )

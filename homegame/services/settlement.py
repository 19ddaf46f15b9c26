"""Pure functions for end-of-game settlement.

No database access, no async. Converts each player's net result into an
ordered list of pairwise payments.
"""

from dataclasses import dataclass
from typing import Sequence

from homegame.models.game import Game, SettlementTransaction
from homegame.models.player import Player

# Balances within this much of zero are treated as settled, so rounding
# noise never produces a payment.
SETTLEMENT_EPSILON = 1.0


@dataclass
class _Balance:
    name: str
    amount: float


def net_balances(players: Sequence[Player]) -> list[tuple[str, float]]:
    """Each player's ``current_stack - total_buy_in``, in roster order."""
    return [(p.display_name, p.net_balance) for p in players]


def compute_settlement(players: Sequence[Player]) -> list[SettlementTransaction]:
    """Greedy creditor/debtor pairing over the roster.

    Repeatedly pairs the first remaining creditor with the first remaining
    debtor (roster order, not balance order), moves ``min(credit, debt)``
    from debtor to creditor, and drops anyone whose balance falls within
    ``SETTLEMENT_EPSILON``. Deterministic for a fixed roster; not
    guaranteed to use the fewest possible payments.

    Args:
        players: The roster, in the order players joined.

    Returns:
        Transactions with ``index`` numbered from 1 in emission order.
    """
    balances = [
        _Balance(name, amount)
        for name, amount in net_balances(players)
        if abs(amount) > SETTLEMENT_EPSILON
    ]

    transactions: list[SettlementTransaction] = []
    index = 1
    while True:
        creditor = next((b for b in balances if b.amount > SETTLEMENT_EPSILON), None)
        debtor = next((b for b in balances if b.amount < -SETTLEMENT_EPSILON), None)
        if creditor is None or debtor is None:
            break

        amount = min(creditor.amount, -debtor.amount)
        transactions.append(
            SettlementTransaction(
                from_player=debtor.name,
                to_player=creditor.name,
                amount=amount,
                index=index,
            )
        )
        creditor.amount -= amount
        debtor.amount += amount
        balances = [b for b in balances if abs(b.amount) > SETTLEMENT_EPSILON]
        index += 1

    return transactions


def settlement_preview(game: Game) -> list[SettlementTransaction]:
    """Stored settlement for a completed game, or a preview for an active one."""
    if game.settlement_transactions is not None:
        return list(game.settlement_transactions)
    return compute_settlement(game.players)

"""Player domain model.

One entry per participant in a game's embedded ``players`` list, the host
included when they play. Stacks and buy-ins change only through the
request workflow (or an explicit host edit), never directly from a client.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from homegame.errors import InvalidState
from homegame.models.common import PlayerStatus, UtcDatetime, new_id, utc_now


class Player(BaseModel):
    """A seat in a home game.

    State machine::

        active --(cash out)--> cashedOut --(buy-in approved)--> active
    """

    id: str = Field(default_factory=new_id)
    user_id: str
    display_name: str
    current_stack: float = 0.0
    total_buy_in: float = 0.0
    joined_at: UtcDatetime = Field(default_factory=utc_now)
    cashed_out_at: Optional[UtcDatetime] = None
    status: PlayerStatus = PlayerStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE

    @property
    def net_balance(self) -> float:
        """Winnings (positive) or losses (negative) relative to buy-in."""
        return self.current_stack - self.total_buy_in

    def rebuy(self, amount: float) -> None:
        """Add chips bought in; reactivates a cashed-out seat."""
        self.current_stack += amount
        self.total_buy_in += amount
        if self.status == PlayerStatus.CASHED_OUT:
            self.status = PlayerStatus.ACTIVE
            self.cashed_out_at = None

    def cash_out(self, final_stack: float, at: Optional[datetime] = None) -> None:
        """Close the seat at ``final_stack``.

        The stack is replaced, not reduced: a cash-out records what the
        player walked away with.

        Raises:
            InvalidState: The player is already cashed out.
        """
        if not self.is_active:
            raise InvalidState(f"{self.display_name} has already cashed out")
        self.status = PlayerStatus.CASHED_OUT
        self.current_stack = final_stack
        self.cashed_out_at = at or utc_now()

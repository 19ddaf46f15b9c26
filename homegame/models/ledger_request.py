"""Buy-in and cash-out request models.

Requests live embedded in the game document and are never deleted; a
resolved request keeps its terminal status as history.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from homegame.errors import InvalidState
from homegame.models.common import (
    BuyInStatus,
    CashOutStatus,
    UtcDatetime,
    new_id,
    utc_now,
)


class BuyInRequest(BaseModel):
    """A player's request to buy chips, awaiting the host's decision."""

    id: str = Field(default_factory=new_id)
    user_id: str
    display_name: str
    amount: float
    requested_at: UtcDatetime = Field(default_factory=utc_now)
    status: BuyInStatus = BuyInStatus.PENDING
    resolved_at: Optional[UtcDatetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == BuyInStatus.PENDING

    def _resolve(self, new_status: BuyInStatus, at: Optional[datetime]) -> None:
        if not self.is_pending:
            raise InvalidState(
                f"Buy-in request already processed (status: {self.status})"
            )
        self.status = new_status
        self.resolved_at = at or utc_now()

    def approve(self, at: Optional[datetime] = None) -> None:
        self._resolve(BuyInStatus.APPROVED, at)

    def reject(self, at: Optional[datetime] = None) -> None:
        self._resolve(BuyInStatus.REJECTED, at)


class CashOutRequest(BaseModel):
    """A player's claim of their final stack, awaiting the host."""

    id: str = Field(default_factory=new_id)
    user_id: str
    display_name: str
    amount: float
    requested_at: UtcDatetime = Field(default_factory=utc_now)
    processed_at: Optional[UtcDatetime] = None
    status: CashOutStatus = CashOutStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == CashOutStatus.PENDING

    def process(self, at: Optional[datetime] = None) -> None:
        if not self.is_pending:
            raise InvalidState(
                f"Cash-out request already processed (status: {self.status})"
            )
        self.status = CashOutStatus.PROCESSED
        self.processed_at = at or utc_now()

"""Common enums, shared types, and utilities for home-game models."""

import logging
import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any, Iterable

from pydantic import AfterValidator, TypeAdapter, ValidationError

logger = logging.getLogger("homegame.models.common")


def _ensure_utc(value: datetime) -> datetime:
    # MongoDB hands back naive datetimes that are already UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


def new_id() -> str:
    """Generate a fresh opaque identifier (UUID4 string)."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_each(
    adapter: TypeAdapter,
    items: Iterable[Any] | None,
    kind: str,
    owner_id: str | None = None,
) -> list:
    """Decode a list element by element, skipping records that fail validation.

    One corrupt entry in a list (a history event, a request) must not make
    the whole document unreadable. Skipped records are logged so they can
    be repaired by hand.

    Args:
        adapter: TypeAdapter for the element type.
        items: Raw list from the document (None is treated as empty).
        kind: Name of the list, used in the log message.
        owner_id: Id of the enclosing document, used in the log message.

    Returns:
        The successfully decoded elements, in their original order.
    """
    decoded: list = []
    for position, raw in enumerate(items or []):
        try:
            decoded.append(adapter.validate_python(raw))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed %s record at position %d in %s: %s",
                kind,
                position,
                owner_id or "<unknown>",
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
    return decoded


class GameStatus(StrEnum):
    """Game lifecycle states. ``completed`` is terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"


class PlayerStatus(StrEnum):
    """Seat states. A cashed-out player becomes active again on rebuy."""
    ACTIVE = "active"
    CASHED_OUT = "cashedOut"


class BuyInStatus(StrEnum):
    """Buy-in request lifecycle states."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CashOutStatus(StrEnum):
    """Cash-out request lifecycle states."""
    PENDING = "pending"
    PROCESSED = "processed"


class EventType(StrEnum):
    """Audit trail entry kinds."""
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"
    BUY_IN = "buyIn"
    CASH_OUT = "cashOut"
    GAME_CREATED = "gameCreated"
    GAME_ENDED = "gameEnded"
    PLAYER_UPDATED = "playerUpdated"


class InviteStatus(StrEnum):
    """Game invite lifecycle states."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"

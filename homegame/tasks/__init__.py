"""Background tasks for the ledger service."""

from homegame.tasks.invite_expiry import (
    expire_stale_invites,
    start_invite_sweeper,
    stop_invite_sweeper,
)

__all__ = [
    "expire_stale_invites",
    "start_invite_sweeper",
    "stop_invite_sweeper",
]

"""Game invite model, stored in the ``game_invites`` collection."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from homegame.models.common import InviteStatus, UtcDatetime, new_id, utc_now


class GameInvite(BaseModel):
    """An invitation for one user to join a game.

    Game title and host are denormalized so an invitee's inbox can be shown
    without loading the game. Group invites carry the group they fanned out
    from.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    game_id: str
    game_title: str
    host_id: str
    host_name: str
    invited_user_id: str
    invited_user_display_name: str
    invited_group_id: Optional[str] = None
    invited_group_name: Optional[str] = None
    message: Optional[str] = None
    created_at: UtcDatetime = Field(default_factory=utc_now)
    status: InviteStatus = InviteStatus.PENDING
    responded_at: Optional[UtcDatetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == InviteStatus.PENDING

    def to_mongo_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="python")

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

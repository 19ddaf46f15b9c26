"""The acting user, as resolved from the identity token."""

from pydantic import BaseModel


class Actor(BaseModel):
    """Whoever is issuing a ledger operation."""

    user_id: str
    display_name: str = "Unknown"

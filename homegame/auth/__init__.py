"""Authentication utilities."""

from homegame.auth.jwt import create_access_token, decode_token
from homegame.auth.dependencies import get_current_user, resolve_actor

__all__ = [
    "create_access_token",
    "decode_token",
    "get_current_user",
    "resolve_actor",
]

"""FastAPI dependency-injection callables for identifying the acting user.

``get_current_user`` is used with ``Depends()`` in route signatures; the
WebSocket stream, which cannot send headers from a browser, resolves its
token through ``resolve_actor`` directly.
"""

import logging

from fastapi import Header
from jose import ExpiredSignatureError, JWTError

from homegame.auth.jwt import decode_token
from homegame.dal.database import get_database
from homegame.dal.users_dal import UserDAL
from homegame.errors import Unauthenticated
from homegame.models.user import Actor

logger = logging.getLogger("homegame.auth.dependencies")


async def resolve_actor(token: str) -> Actor:
    """Turn an identity token into an Actor.

    The display name comes from the token's ``name`` claim, then the users
    collection, then "Unknown".

    Raises:
        Unauthenticated: The token is expired, malformed or has no subject.
    """
    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        logger.warning("Expired JWT presented")
        raise Unauthenticated("Token has expired")
    except JWTError:
        logger.warning("Invalid JWT presented")
        raise Unauthenticated("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token has no subject")

    name = payload.get("name")
    if not name:
        name = await UserDAL(get_database()).resolve_display_name(user_id)
    return Actor(user_id=user_id, display_name=name)


async def get_current_user(
    authorization: str | None = Header(None),
) -> Actor:
    """Validate the bearer token from the Authorization header.

    Raises:
        Unauthenticated: Missing, invalid or expired token.
    """
    if authorization is None or not authorization.startswith("Bearer "):
        raise Unauthenticated("Missing or invalid Authorization header")

    return await resolve_actor(authorization[len("Bearer "):])

"""JWT utilities for user identity tokens.

Uses HS256 with a shared secret. A token identifies one user: ``sub`` is
the user id and the optional ``name`` claim carries a display name. Tokens
also carry ``exp`` and ``iat``. The secret is loaded from the JWT_SECRET
environment variable.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt

from homegame.config import settings

logger = logging.getLogger("homegame.auth.jwt")

ALGORITHM = "HS256"
DEFAULT_EXPIRE_HOURS = 24


def create_access_token(
    user_id: str,
    display_name: Optional[str] = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed identity token for ``user_id``.

    Args:
        user_id: Stored as the ``sub`` claim.
        display_name: Stored as the ``name`` claim when given.
        expires_delta: Custom token lifetime.  Defaults to 24 hours.

    Returns:
        A compact JWS string.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=DEFAULT_EXPIRE_HOURS))

    claims: dict[str, Any] = {"sub": user_id, "exp": expire, "iat": now}
    if display_name:
        claims["name"] = display_name
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)
    logger.debug("Created JWT for sub=%s, expires=%s", user_id, expire.isoformat())
    return token


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        ExpiredSignatureError: If the token has expired.
        JWTError: If the token is malformed or the signature is invalid.
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])

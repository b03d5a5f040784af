"""Signed, time-limited session tokens (JWT, HS256).

The token is the whole session: it is verified by signature and expiry only,
without a database lookup, and there is no server-side revocation.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Union

import jwt

from postboard.errors import ExpiredToken, InvalidToken
from postboard.util.time import utcnow


_JWT_ALG = "HS256"

# Claims owned by this module; callers cannot override them.
_RESERVED = ("iat", "exp", "iat_ms")


def issue(
    claims: Mapping[str, Any],
    secret: str,
    ttl: Union[timedelta, int],
    *,
    now: Optional[datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not isinstance(ttl, timedelta):
        ttl = timedelta(seconds=int(ttl))
    if ttl <= timedelta(0):
        raise ValueError("ttl_not_positive")

    issued = now or utcnow()
    payload: Dict[str, Any] = {k: v for k, v in claims.items() if k not in _RESERVED}
    payload["iat"] = int(issued.timestamp())
    payload["exp"] = int((issued + ttl).timestamp())
    # Second-resolution iat would make two logins in the same second identical.
    payload["iat_ms"] = int(issued.timestamp() * 1000)
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def verify(token: str, secret: str) -> Dict[str, Any]:
    """Return the claims of a valid token.

    Raises ``ExpiredToken`` past ``exp`` and ``InvalidToken`` for anything else
    (bad signature, garbage input, missing claims).
    """
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not token:
        raise InvalidToken("missing_token")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredToken() from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken() from e


def issue_session_token(user: Mapping[str, Any], secret: str, ttl_seconds: int) -> str:
    return issue(
        {"sub": str(user["user_id"]), "email": user["email"]},
        secret,
        ttl_seconds,
    )


def session_from_claims(claims: Mapping[str, Any]) -> Dict[str, Any]:
    """Project verified claims onto the session shape the handlers use."""
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidToken("token_sub_invalid") from e
    return {"user_id": user_id, "email": claims.get("email")}

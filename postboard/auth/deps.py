from __future__ import annotations

from typing import Any, Dict

from fastapi import Depends, Request

from postboard.config import Config
from postboard.errors import AuthenticationError

from .cookies import read_session_cookie
from .tokens import session_from_claims, verify


def get_config(request: Request) -> Config:
    """The process config, attached to the app by ``create_app``."""
    return request.app.state.cfg


def get_current_session(request: Request, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    """Authenticate a request from its session cookie.

    Only the token is checked (signature + expiry); the user row is not
    loaded. Returns ``{"user_id": int, "email": str}``.
    """
    token = read_session_cookie(request, cfg)
    if not token:
        raise AuthenticationError("not_logged_in")
    return session_from_claims(verify(token, cfg.AUTH_JWT_SECRET))

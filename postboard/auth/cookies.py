from __future__ import annotations

from typing import Optional

from fastapi import Request, Response

from postboard.config import Config


def _cookie_kwargs(cfg: Config) -> dict:
    # One source for the attributes: a clearing cookie that differs from the
    # one that was set (path, secure, samesite) is ignored by browsers.
    return {
        "httponly": True,
        "samesite": "lax",
        "secure": cfg.is_production,
        "max_age": int(cfg.AUTH_TOKEN_TTL_SECONDS),
        "path": cfg.AUTH_COOKIE_PATH,
    }


def set_session_cookie(response: Response, token: str, cfg: Config) -> None:
    response.set_cookie(key=cfg.AUTH_COOKIE_NAME, value=token, **_cookie_kwargs(cfg))


def clear_session_cookie(response: Response, cfg: Config) -> None:
    """Overwrite the session cookie with an empty value and the same attributes."""
    response.set_cookie(key=cfg.AUTH_COOKIE_NAME, value="", **_cookie_kwargs(cfg))


def read_session_cookie(request: Request, cfg: Config) -> Optional[str]:
    # An emptied (logged out) cookie is the same as no cookie.
    token = request.cookies.get(cfg.AUTH_COOKIE_NAME)
    return token or None

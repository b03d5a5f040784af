"""Auth endpoints: signup, signin, logout, me.

The session is a JWT in an httpOnly cookie; see ``postboard.auth``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from postboard.auth import create_user, get_config, get_current_session, public_user, verify_user_credentials
from postboard.auth.cookies import clear_session_cookie, read_session_cookie, set_session_cookie
from postboard.auth.crud import get_user_by_id, touch_last_login
from postboard.auth.tokens import issue_session_token
from postboard.config import Config
from postboard.db import connect
from postboard.errors import AuthenticationError, ValidationError


logger = logging.getLogger("postboard.api.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class SigninRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def _start_session(response: Response, user: Dict[str, Any], cfg: Config) -> None:
    token = issue_session_token(user, cfg.AUTH_JWT_SECRET, cfg.AUTH_TOKEN_TTL_SECONDS)
    set_session_cookie(response, token, cfg)


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, response: Response, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    name = (payload.name or "").strip()
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not name or not email or not password:
        raise ValidationError("missing_fields")

    with connect(cfg.DB_DSN) as conn:
        user = create_user(conn, name=name, email=email, password=password)

    _start_session(response, user, cfg)
    logger.info("signup user_id=%s", user["user_id"])
    return {"user": user}


@router.post("/signin")
def signin(
    payload: SigninRequest,
    request: Request,
    response: Response,
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not email or not password:
        raise ValidationError("missing_credentials")

    # No re-login on top of a live cookie; the client has to log out first.
    if read_session_cookie(request, cfg):
        raise ValidationError("already_logged_in")

    with connect(cfg.DB_DSN) as conn:
        row = verify_user_credentials(conn, email, password)
        if row is None:
            # Same answer for unknown email and wrong password.
            raise AuthenticationError("invalid_credentials")
        touch_last_login(conn, int(row["user_id"]))

    user = public_user(row)
    _start_session(response, user, cfg)
    logger.info("signin user_id=%s", user["user_id"])
    return {"user": user}


@router.post("/logout")
def logout(request: Request, response: Response, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    """Clear the session cookie.

    The token itself stays valid until it expires; there is no revocation list.
    """
    if not read_session_cookie(request, cfg):
        raise ValidationError("not_logged_in")
    clear_session_cookie(response, cfg)
    return {"message": "Logged out"}


@router.get("/me")
def me(
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        row = get_user_by_id(conn, session["user_id"])
    if row is None:
        raise AuthenticationError("user_not_found")
    return {"user": public_user(row)}

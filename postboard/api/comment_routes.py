from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from postboard.auth import get_config, get_current_session
from postboard.comments.crud import (
    create_comment,
    delete_comment,
    get_comment,
    get_comment_with_post,
    list_comments,
    update_comment,
)
from postboard.config import Config
from postboard.db import connect
from postboard.errors import NotFoundError, PermissionDeniedError, ValidationError
from postboard.posts.crud import get_post

from .params import CommentId, PostId


router = APIRouter(prefix="/api/comments", tags=["comments"])


class CommentRequest(BaseModel):
    comment: Optional[str] = None


def _comment_text(payload: CommentRequest) -> str:
    text = (payload.comment or "").strip()
    if not text:
        raise ValidationError("comment_required")
    return text


@router.get("")
def comments_index(cfg: Config = Depends(get_config)) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        return list_comments(conn)


@router.get("/{comment_id}")
def comments_show(
    comment_id: CommentId,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        comment = get_comment_with_post(conn, comment_id)
    if comment is None:
        raise NotFoundError("comment_not_found")
    return comment


@router.post("/{post_id}", status_code=201)
def comments_create(
    post_id: PostId,
    payload: CommentRequest,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    """Comment on post ``post_id`` as the logged-in user."""
    text = _comment_text(payload)
    with connect(cfg.DB_DSN) as conn:
        if get_post(conn, post_id) is None:
            raise NotFoundError("post_not_found")
        return create_comment(conn, post_id=post_id, user_id=session["user_id"], comment=text)


def _owned_comment(conn: Any, comment_id: int, session: Dict[str, Any]) -> Dict[str, Any]:
    comment = get_comment(conn, comment_id)
    if comment is None:
        raise NotFoundError("comment_not_found")
    if int(comment["user_id"]) != int(session["user_id"]):
        raise PermissionDeniedError("not_comment_owner")
    return comment


@router.put("/{comment_id}")
def comments_update(
    comment_id: CommentId,
    payload: CommentRequest,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    text = _comment_text(payload)
    with connect(cfg.DB_DSN) as conn:
        _owned_comment(conn, comment_id, session)
        comment = update_comment(conn, comment_id, comment=text)
    if comment is None:
        raise NotFoundError("comment_not_found")
    return comment


@router.delete("/{comment_id}")
def comments_delete(
    comment_id: CommentId,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        _owned_comment(conn, comment_id, session)
        if not delete_comment(conn, comment_id):
            raise NotFoundError("comment_not_found")
    return {"message": "Comment deleted", "comment_id": comment_id}

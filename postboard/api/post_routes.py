from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from postboard.auth import get_config, get_current_session
from postboard.comments.crud import list_comments_for_post
from postboard.config import Config
from postboard.db import connect
from postboard.errors import NotFoundError, PermissionDeniedError, ValidationError
from postboard.posts.crud import (
    create_post,
    delete_post,
    get_post,
    get_post_with_user,
    list_posts,
    update_post,
)

from .params import PostId


router = APIRouter(prefix="/api/posts", tags=["posts"])


class PostCreateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class PostUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


def _owned_post(conn: Any, post_id: int, session: Dict[str, Any]) -> Dict[str, Any]:
    post = get_post(conn, post_id)
    if post is None:
        raise NotFoundError("post_not_found")
    if int(post["user_id"]) != int(session["user_id"]):
        raise PermissionDeniedError("not_post_owner")
    return post


@router.get("")
def posts_index(cfg: Config = Depends(get_config)) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        return list_posts(conn)


@router.post("/post", status_code=201)
def posts_create(
    payload: PostCreateRequest,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    title = (payload.title or "").strip()
    if not title:
        raise ValidationError("title_required")

    with connect(cfg.DB_DSN) as conn:
        return create_post(conn, user_id=session["user_id"], title=title, content=payload.content or "")


@router.get("/{post_id}")
def posts_show(
    post_id: PostId,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        post = get_post_with_user(conn, post_id)
    if post is None:
        raise NotFoundError("post_not_found")
    return post


@router.get("/{post_id}/comments")
def posts_comments(post_id: PostId, cfg: Config = Depends(get_config)) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        if get_post(conn, post_id) is None:
            raise NotFoundError("post_not_found")
        return list_comments_for_post(conn, post_id)


@router.put("/{post_id}")
def posts_update(
    post_id: PostId,
    payload: PostUpdateRequest,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    if payload.title is None and payload.content is None:
        raise ValidationError("nothing_to_update")
    title = payload.title.strip() if payload.title is not None else None
    if title == "":
        raise ValidationError("title_required")

    with connect(cfg.DB_DSN) as conn:
        _owned_post(conn, post_id, session)
        post = update_post(conn, post_id, title=title, content=payload.content)
    if post is None:
        raise NotFoundError("post_not_found")
    return post


@router.delete("/{post_id}")
def posts_delete(
    post_id: PostId,
    session: Dict[str, Any] = Depends(get_current_session),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        _owned_post(conn, post_id, session)
        if not delete_post(conn, post_id):
            raise NotFoundError("post_not_found")
    return {"message": "Post deleted", "post_id": post_id}

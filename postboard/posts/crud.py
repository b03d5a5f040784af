from __future__ import annotations

from typing import Any, Dict, List, Optional

from postboard.auth.crud import public_user
from postboard.db import execute_returning, is_integrity_error, row_to_dict
from postboard.errors import AuthenticationError
from postboard.util.time import utcnow_iso


def _users_by_id(conn: Any, user_ids: List[int]) -> Dict[int, Dict[str, Any]]:
    ids = sorted(set(int(u) for u in user_ids))
    if not ids:
        return {}
    marks = ",".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM users WHERE user_id IN ({marks})", ids).fetchall()
    return {int(r["user_id"]): public_user(r) for r in rows}


def _with_user(conn: Any, posts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    users = _users_by_id(conn, [p["user_id"] for p in posts])
    for p in posts:
        p["user"] = users.get(int(p["user_id"]))
    return posts


def list_posts(conn: Any) -> List[Dict[str, Any]]:
    """All posts, newest first, each with its owner under ``user``."""
    rows = conn.execute("SELECT * FROM posts ORDER BY created_at DESC, post_id DESC").fetchall()
    return _with_user(conn, [dict(r) for r in rows])


def get_post(conn: Any, post_id: int) -> Optional[Dict[str, Any]]:
    return row_to_dict(conn.execute("SELECT * FROM posts WHERE post_id=?", (int(post_id),)).fetchone())


def get_post_with_user(conn: Any, post_id: int) -> Optional[Dict[str, Any]]:
    post = get_post(conn, post_id)
    if post is None:
        return None
    return _with_user(conn, [post])[0]


def create_post(conn: Any, *, user_id: int, title: str, content: str = "") -> Dict[str, Any]:
    now = utcnow_iso()
    try:
        row = execute_returning(
            conn,
            """
            INSERT INTO posts (user_id, title, content, created_at, updated_at)
            VALUES (?,?,?,?,?)
            RETURNING *
            """,
            (int(user_id), title, content or "", now, now),
        )
    except Exception as exc:
        # FK violation: the token outlived its user.
        if is_integrity_error(exc):
            raise AuthenticationError("user_not_found") from exc
        raise
    return dict(row)


def update_post(
    conn: Any,
    post_id: int,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Partial update; fields left as None are kept. Returns None if the post is gone."""
    fields: list[tuple[str, Any]] = []
    if title is not None:
        fields.append(("title", title))
    if content is not None:
        fields.append(("content", content))
    fields.append(("updated_at", utcnow_iso()))

    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [int(post_id)]
    return execute_returning(conn, f"UPDATE posts SET {sets} WHERE post_id=? RETURNING *", params)


def delete_post(conn: Any, post_id: int) -> bool:
    """Delete a post (its comments go with it). False if nothing was deleted."""
    row = execute_returning(conn, "DELETE FROM posts WHERE post_id=? RETURNING post_id", (int(post_id),))
    return row is not None

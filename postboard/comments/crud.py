from __future__ import annotations

from typing import Any, Dict, List, Optional

from postboard.db import execute_returning, is_integrity_error, row_to_dict
from postboard.errors import NotFoundError
from postboard.util.time import utcnow_iso


def _with_post(conn: Any, comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ids = sorted(set(int(c["post_id"]) for c in comments))
    posts: Dict[int, Dict[str, Any]] = {}
    if ids:
        marks = ",".join("?" for _ in ids)
        rows = conn.execute(f"SELECT * FROM posts WHERE post_id IN ({marks})", ids).fetchall()
        posts = {int(r["post_id"]): dict(r) for r in rows}
    for c in comments:
        c["post"] = posts.get(int(c["post_id"]))
    return comments


def list_comments(conn: Any) -> List[Dict[str, Any]]:
    """All comments, oldest first, each with its parent post under ``post``."""
    rows = conn.execute("SELECT * FROM comments ORDER BY created_at ASC, comment_id ASC").fetchall()
    return _with_post(conn, [dict(r) for r in rows])


def list_comments_for_post(conn: Any, post_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM comments WHERE post_id=? ORDER BY created_at ASC, comment_id ASC",
        (int(post_id),),
    ).fetchall()
    return [dict(r) for r in rows]


def get_comment(conn: Any, comment_id: int) -> Optional[Dict[str, Any]]:
    return row_to_dict(
        conn.execute("SELECT * FROM comments WHERE comment_id=?", (int(comment_id),)).fetchone()
    )


def get_comment_with_post(conn: Any, comment_id: int) -> Optional[Dict[str, Any]]:
    c = get_comment(conn, comment_id)
    if c is None:
        return None
    return _with_post(conn, [c])[0]


def create_comment(conn: Any, *, post_id: int, user_id: int, comment: str) -> Dict[str, Any]:
    now = utcnow_iso()
    try:
        row = execute_returning(
            conn,
            """
            INSERT INTO comments (post_id, user_id, comment, created_at, updated_at)
            VALUES (?,?,?,?,?)
            RETURNING *
            """,
            (int(post_id), int(user_id), comment, now, now),
        )
    except Exception as exc:
        # The post was deleted between the handler's existence check and here.
        if is_integrity_error(exc):
            raise NotFoundError("post_not_found") from exc
        raise
    return dict(row)


def update_comment(conn: Any, comment_id: int, *, comment: str) -> Optional[Dict[str, Any]]:
    return execute_returning(
        conn,
        "UPDATE comments SET comment=?, updated_at=? WHERE comment_id=? RETURNING *",
        (comment, utcnow_iso(), int(comment_id)),
    )


def delete_comment(conn: Any, comment_id: int) -> bool:
    row = execute_returning(
        conn,
        "DELETE FROM comments WHERE comment_id=? RETURNING comment_id",
        (int(comment_id),),
    )
    return row is not None

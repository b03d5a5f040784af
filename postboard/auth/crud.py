from __future__ import annotations

from typing import Any, Dict, Optional

from postboard.db import execute_returning, is_integrity_error, row_to_dict
from postboard.errors import ConflictError, ValidationError
from postboard.util.time import utcnow_iso

from .security import dummy_verify, hash_password, verify_password


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_user(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    """The client-facing projection of a user row (no credential material)."""
    d = dict(row)
    d.pop("password_hash", None)
    return d


def get_user_by_email(conn: Any, email: str) -> Optional[Dict[str, Any]]:
    e = normalize_email(email)
    if not e:
        return None
    return row_to_dict(conn.execute("SELECT * FROM users WHERE email=?", (e,)).fetchone())


def get_user_by_id(conn: Any, user_id: int) -> Optional[Dict[str, Any]]:
    return row_to_dict(conn.execute("SELECT * FROM users WHERE user_id=?", (int(user_id),)).fetchone())


def verify_user_credentials(conn: Any, email: str, password: str) -> Optional[Dict[str, Any]]:
    """Return the user row when the password matches, else None.

    Unknown email and wrong password are indistinguishable to the caller.
    """
    row = get_user_by_email(conn, email)
    if row is None:
        # Keep the unknown-email path as slow as a wrong password.
        dummy_verify()
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return row


def create_user(conn: Any, *, name: str, email: str, password: str) -> Dict[str, Any]:
    e = normalize_email(email)
    n = (name or "").strip()
    if not e or not n or not password:
        raise ValidationError("missing_fields")

    # Friendlier error for the common case. The UNIQUE constraint below is
    # what actually prevents duplicates under concurrent signups.
    if conn.execute("SELECT 1 FROM users WHERE email=?", (e,)).fetchone() is not None:
        raise ConflictError("user_exists")

    now = utcnow_iso()
    try:
        row = execute_returning(
            conn,
            """
            INSERT INTO users (name, email, password_hash, created_at, updated_at)
            VALUES (?,?,?,?,?)
            RETURNING *
            """,
            (n, e, hash_password(password), now, now),
        )
    except Exception as exc:
        if is_integrity_error(exc):
            raise ConflictError("user_exists") from exc
        raise
    return public_user(row)


def touch_last_login(conn: Any, user_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE users SET last_login_at=?, updated_at=? WHERE user_id=?",
        (now, now, int(user_id)),
    )

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence
from urllib.parse import urlparse

from postboard.errors import PersistenceError
from postboard.schema import get_schema_sql


logger = logging.getLogger("postboard.db")

# SQLSTATE class 23: integrity constraint violation (unique, foreign key, not null).
_PG_INTEGRITY_CLASS = "23"


def _detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'."""
    s = (dsn or "").strip()
    if not s:
        return "sqlite"
    scheme = urlparse(s).scheme.lower()
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    return "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Convert qmark placeholders (?) to psycopg2 placeholders (%s).

    Skips '?' inside quoted literals. Not a SQL parser, but the queries in this
    package never need more than that.
    """
    out: List[str] = []
    quote: Optional[str] = None
    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
            out.append(ch)
            continue
        if ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        else:
            out.append(ch)
    return "".join(out)


class PGConnection:
    """Makes a psycopg2 connection look like a sqlite3 one (execute/commit/rollback)."""

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._conn.cursor()
        cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return cur

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def is_integrity_error(exc: BaseException) -> bool:
    """True for unique / foreign key / not-null violations on either engine."""
    if isinstance(exc, sqlite3.IntegrityError):
        return True
    pgcode = getattr(exc, "pgcode", None) or ""
    return str(pgcode).startswith(_PG_INTEGRITY_CLASS)


def row_to_dict(row: Any) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return dict(row)


@contextmanager
def _connect_postgres(dsn: str) -> Iterator[PGConnection]:
    import psycopg2
    import psycopg2.extras

    try:
        # RealDictCursor makes fetchone()/fetchall() rows act like dicts.
        raw = psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor)
    except psycopg2.Error as e:
        raise PersistenceError("database_unavailable") from e

    conn = PGConnection(raw)
    try:
        yield conn
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        raise PersistenceError("database_error") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def _connect_sqlite(dsn: str) -> Iterator[sqlite3.Connection]:
    if dsn.lower().startswith("sqlite:///"):
        dsn = dsn[len("sqlite:///") :]

    if dsn != ":memory:":
        Path(dsn).parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(dsn, timeout=30, check_same_thread=False)
    except sqlite3.Error as e:
        raise PersistenceError("database_unavailable") from e

    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA busy_timeout=5000;")  # 5s
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError("database_error") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Open a connection for one unit of work.

    Commits on a clean exit and rolls back on any exception. Driver errors
    that escape the block are re-raised as ``PersistenceError``; callers that
    want to react to a specific failure (e.g. a unique violation) must catch
    it inside the block.
    """
    dsn = (db_dsn or "").strip()
    if _detect_dialect(dsn) == "postgres":
        with _connect_postgres(dsn) as conn:
            yield conn
    else:
        with _connect_sqlite(dsn) as conn:
            yield conn


def init_db(db_dsn: str) -> None:
    """Create all tables. Idempotent."""
    dialect = _detect_dialect(db_dsn)
    logger.info("Initializing DB (%s)", dialect)
    with connect(db_dsn) as conn:
        ddl = get_schema_sql(dialect)
        if dialect == "postgres":
            # Execute multi-statement DDL (naive split is OK for our schema)
            for stmt in [s.strip() for s in ddl.split(";") if s.strip()]:
                conn.execute(stmt)
            return
        conn.executescript(ddl)


def execute_returning(conn: Any, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
    """Run an INSERT/UPDATE/DELETE ... RETURNING statement and return the first row.

    The cursor is drained so SQLite finalizes the statement before commit.
    """
    rows = conn.execute(sql, params).fetchall()
    if not rows:
        return None
    return dict(rows[0])

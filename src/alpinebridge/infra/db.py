"""Database access layer using psycopg2.

Provides:
- get_conn(): Get a database connection from DATABASE_URL
- txn(): Context manager for short, safe transactions
- savepoint(): Nested scope whose failure does not abort the transaction
- execute(): Parameterized query execution
- fetchone/fetchall: Query helpers
"""

import os
import re
from contextlib import contextmanager
from typing import Iterator
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

_SAVEPOINT_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def _dsn_has_password(dsn: str) -> bool:
    """Check whether a URL or key=value DSN already carries a password."""
    if "://" in dsn:
        return bool(urlparse(dsn).password)
    return re.search(r"(^|\s)password=", dsn) is not None


def get_conn() -> PgConnection:
    """Get a new database connection from DATABASE_URL.

    DB_PASSWORD is passed separately when the DSN has no password of its own
    (secret managers usually inject it that way).

    Returns:
        psycopg2 connection object.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not _dsn_has_password(dsn):
        return psycopg2.connect(dsn, password=db_password)
    return psycopg2.connect(dsn)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, creates a new connection that is closed on exit.
    Commits on successful exit, rolls back on exception.

    Args:
        conn: Optional existing connection. If None, creates new one.

    Yields:
        Cursor for executing queries within the transaction.

    Example:
        with txn() as cur:
            cur.execute("INSERT INTO t (x) VALUES (%s)", (1,))
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


@contextmanager
def savepoint(cur: PgCursor, name: str) -> Iterator[PgCursor]:
    """Run a block under a SAVEPOINT inside the current transaction.

    On exception the savepoint is rolled back and the exception re-raised;
    the surrounding transaction stays usable.

    Args:
        cur: Cursor inside an open transaction.
        name: Savepoint identifier (lowercase letters, digits, underscore).

    Raises:
        ValueError: If name is not a plain identifier.
    """
    if not _SAVEPOINT_NAME.match(name):
        raise ValueError(f"invalid savepoint name: {name!r}")

    cur.execute(f"SAVEPOINT {name}")
    try:
        yield cur
    except Exception:
        cur.execute(f"ROLLBACK TO SAVEPOINT {name}")
        raise
    cur.execute(f"RELEASE SAVEPOINT {name}")


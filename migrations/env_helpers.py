"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without an alembic context.
DATABASE_URL may be a URL (``postgres://`` / ``postgresql://``) or a libpq
``key=value`` DSN; both become a SQLAlchemy psycopg2 URL.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote_plus, urlsplit, urlunsplit

SQLALCHEMY_SCHEME = "postgresql+psycopg2"

_DSN_TOKEN = re.compile(r"(\w+)\s*=\s*('(?:\\.|[^'\\])*'|\S+)")
_ESCAPED_CHAR = re.compile(r"\\(.)")


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Parse a libpq key=value DSN; quoted values may contain escaped chars."""
    params: dict[str, str] = {}
    for key, raw in _DSN_TOKEN.findall(dsn):
        if raw.startswith("'") and raw.endswith("'") and len(raw) >= 2:
            raw = _ESCAPED_CHAR.sub(r"\1", raw[1:-1])
        params[key] = raw
    return params


def libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq DSN into a SQLAlchemy URL.

    A host starting with ``/`` is a unix socket directory and goes into the
    query string; DB_PASSWORD fills in a missing password.
    """
    params = parse_libpq_dsn(dsn)
    password = params.get("password") or os.environ.get("DB_PASSWORD", "")

    user = quote_plus(params.get("user", ""))
    password = quote_plus(password)
    dbname = quote_plus(params.get("dbname", ""))
    host = params.get("host", "localhost")
    port = params.get("port", "5432")

    if host.startswith("/"):
        return f"{SQLALCHEMY_SCHEME}://{user}:{password}@/{dbname}?host={quote_plus(host)}"
    return f"{SQLALCHEMY_SCHEME}://{user}:{password}@{host}:{port}/{dbname}"


def _normalize_url(url: str) -> str:
    parsed = urlsplit(url)
    scheme, netloc = parsed.scheme, parsed.netloc
    if scheme in ("postgres", "postgresql"):
        scheme = SQLALCHEMY_SCHEME

    db_password = os.environ.get("DB_PASSWORD", "")
    if db_password and not parsed.password and parsed.hostname:
        netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(db_password)}@{parsed.hostname}"
        if parsed.port:
            netloc += f":{parsed.port}"

    return urlunsplit((scheme, netloc, parsed.path, parsed.query, parsed.fragment))


def database_url_from_env() -> str:
    """Read DATABASE_URL and return it as a SQLAlchemy psycopg2 URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" in url:
        return _normalize_url(url)
    return libpq_dsn_to_url(url)

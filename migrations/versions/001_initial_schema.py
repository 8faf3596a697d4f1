"""Hotels, guest requests and request logs (SQL-only).

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from pathlib import Path

from alembic import op


# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

SQL_FILE = "001_initial.sql"


def _read_sql(name: str) -> str:
    return (Path(__file__).resolve().parents[1] / "sql" / name).read_text(encoding="utf-8")


def upgrade() -> None:
    # exec_driver_sql runs the multi-statement file in one round trip
    op.get_bind().exec_driver_sql(_read_sql(SQL_FILE))


def downgrade() -> None:
    raise NotImplementedError("Downgrade not supported")

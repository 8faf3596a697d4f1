"""Request logs repository - append-only audit trail of lifecycle events.

Log writes are best-effort: each insert runs under a SAVEPOINT, so a failure
is rolled back on its own and the surrounding transaction (the insert or
status update it documents) still commits.
"""

import json
from typing import Any, Sequence

import psycopg2
from psycopg2.extensions import cursor as PgCursor

from alpinebridge.domain.models import LogEvent
from alpinebridge.infra.db import savepoint
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context

logger = get_logger(__name__)


def insert_logs(
    cur: PgCursor,
    *,
    request_ids: Sequence[str],
    event: LogEvent,
    details: dict[str, Any] | None = None,
) -> int:
    """Append one log entry per request id.

    Args:
        cur: Database cursor (must be inside a transaction).
        request_ids: Requests the event applies to.
        event: Lifecycle event type.
        details: Optional JSON-serializable details, shared by all entries.

    Returns:
        Number of entries written; 0 when the write failed.
    """
    if not request_ids:
        return 0

    try:
        with savepoint(cur, "request_logs"):
            cur.execute(
                """
                INSERT INTO request_logs (request_id, event_type, details)
                SELECT rid, %s, %s::jsonb
                FROM unnest(%s::text[]) AS rid
                """,
                (
                    event.value,
                    json.dumps(details) if details is not None else None,
                    list(request_ids),
                ),
            )
            return cur.rowcount
    except psycopg2.Error as exc:
        logger.warning(
            "request log write failed",
            extra={
                "extra_fields": safe_log_context(
                    event_type=event.value,
                    count=len(request_ids),
                    error_type=type(exc).__name__,
                )
            },
        )
        return 0


def count_logs(cur: PgCursor, request_id: str) -> dict[str, int]:
    """Count log entries for one request, keyed by event type."""
    cur.execute(
        """
        SELECT event_type, COUNT(*)
        FROM request_logs
        WHERE request_id = %s
        GROUP BY event_type
        """,
        (request_id,),
    )
    return {row[0]: int(row[1]) for row in cur.fetchall()}

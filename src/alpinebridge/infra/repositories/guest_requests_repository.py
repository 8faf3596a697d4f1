"""Guest requests repository.

Uses raw SQL with psycopg2 (no ORM).

Lifecycle transitions are single set-based UPDATEs guarded by the current
status and return the ids that actually changed:

    mark_sent:          pending          -> sent
    mark_acknowledged:  pending | sent   -> acknowledged

Ids that are unknown, or already past the target state, are left untouched,
so ``sent_at`` and ``acknowledged_at`` are set exactly once.
"""

import json
from datetime import datetime
from typing import Any, Sequence

from psycopg2.extensions import cursor as PgCursor

from alpinebridge.domain.models import (
    UNACKNOWLEDGED_STATUSES,
    GuestRequest,
    RequestStatus,
    Selection,
)

_COLUMNS = """
    request_id, hotel_code, check_in_date, check_out_date,
    adult_count, children_count, child_ages,
    selected_room, room_code, room_name,
    selected_offer, offer_code, offer_name,
    gender, first_name, last_name, phone_number, email, language,
    comments, origin, status, created_at, sent_at, acknowledged_at
"""


def _row_to_request(row: Sequence[Any]) -> GuestRequest:
    child_ages = row[6]
    if isinstance(child_ages, str):
        child_ages = json.loads(child_ages)

    return GuestRequest(
        request_id=row[0],
        hotel_code=row[1],
        check_in_date=row[2],
        check_out_date=row[3],
        adult_count=row[4],
        children_count=row[5],
        child_ages=list(child_ages or []),
        room=Selection(raw=row[7], code=row[8], name=row[9]),
        offer=Selection(raw=row[10], code=row[11], name=row[12]),
        gender=row[13] or "",
        first_name=row[14] or "",
        last_name=row[15] or "",
        phone_number=row[16] or "",
        email=row[17],
        language=row[18],
        comments=row[19],
        origin=row[20],
        status=RequestStatus(row[21]),
        created_at=row[22],
        sent_at=row[23],
        acknowledged_at=row[24],
    )


def insert_guest_request(cur: PgCursor, request: GuestRequest) -> None:
    """Insert a new guest request row.

    Args:
        cur: Database cursor (must be inside a transaction).
        request: Fully built request; its status is stored as given.
    """
    cur.execute(
        f"""
        INSERT INTO guest_requests ({_COLUMNS})
        VALUES (
            %s, %s, %s, %s,
            %s, %s, %s::jsonb,
            %s, %s, %s,
            %s, %s, %s,
            %s, %s, %s, %s, %s, %s,
            %s, %s, %s, %s, %s, %s
        )
        """,
        (
            request.request_id,
            request.hotel_code,
            request.check_in_date,
            request.check_out_date,
            request.adult_count,
            request.children_count,
            json.dumps(list(request.child_ages)),
            request.room.raw,
            request.room.code,
            request.room.name,
            request.offer.raw,
            request.offer.code,
            request.offer.name,
            request.gender or None,
            request.first_name or None,
            request.last_name or None,
            request.phone_number or None,
            request.email,
            request.language,
            request.comments,
            request.origin,
            request.status.value,
            request.created_at,
            request.sent_at,
            request.acknowledged_at,
        ),
    )


def get_guest_request(cur: PgCursor, request_id: str) -> GuestRequest | None:
    """Fetch one guest request by id."""
    cur.execute(
        f"SELECT {_COLUMNS} FROM guest_requests WHERE request_id = %s",
        (request_id,),
    )
    row = cur.fetchone()
    return _row_to_request(row) if row else None


def list_unacknowledged(cur: PgCursor, hotel_code: str) -> list[GuestRequest]:
    """List pending and sent requests of a hotel, newest first."""
    cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM guest_requests
        WHERE hotel_code = %s
          AND status = ANY(%s)
        ORDER BY created_at DESC, request_id DESC
        """,
        (hotel_code, [s.value for s in UNACKNOWLEDGED_STATUSES]),
    )
    return [_row_to_request(row) for row in cur.fetchall()]


def mark_sent(cur: PgCursor, request_ids: Sequence[str], sent_at: datetime) -> list[str]:
    """Move pending requests to sent.

    Returns:
        Ids that were pending and are now sent.
    """
    if not request_ids:
        return []

    cur.execute(
        """
        UPDATE guest_requests
        SET status  = %s,
            sent_at = %s
        WHERE request_id = ANY(%s)
          AND status = %s
        RETURNING request_id
        """,
        (RequestStatus.SENT.value, sent_at, list(request_ids), RequestStatus.PENDING.value),
    )
    return [row[0] for row in cur.fetchall()]


def mark_acknowledged(
    cur: PgCursor, request_ids: Sequence[str], acknowledged_at: datetime
) -> list[str]:
    """Move pending or sent requests to acknowledged.

    Returns:
        Ids that changed; unknown and already acknowledged ids are absent.
    """
    if not request_ids:
        return []

    cur.execute(
        """
        UPDATE guest_requests
        SET status          = %s,
            acknowledged_at = %s
        WHERE request_id = ANY(%s)
          AND status = ANY(%s)
        RETURNING request_id
        """,
        (
            RequestStatus.ACKNOWLEDGED.value,
            acknowledged_at,
            list(request_ids),
            [s.value for s in UNACKNOWLEDGED_STATUSES],
        ),
    )
    return [row[0] for row in cur.fetchall()]


def list_requests(
    cur: PgCursor,
    *,
    hotel_code: str | None = None,
    status: RequestStatus | None = None,
    limit: int = 100,
) -> list[GuestRequest]:
    """List requests newest first, optionally filtered by hotel and status."""
    conditions: list[str] = []
    params: list[Any] = []
    if hotel_code is not None:
        conditions.append("hotel_code = %s")
        params.append(hotel_code)
    if status is not None:
        conditions.append("status = %s")
        params.append(status.value)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    params.append(limit)

    cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM guest_requests
        {where}
        ORDER BY created_at DESC, request_id DESC
        LIMIT %s
        """,
        params,
    )
    return [_row_to_request(row) for row in cur.fetchall()]


def count_by_status(cur: PgCursor, hotel_code: str | None = None) -> dict[str, int]:
    """Count requests per status; every status is present in the result."""
    if hotel_code is None:
        cur.execute("SELECT status, COUNT(*) FROM guest_requests GROUP BY status")
    else:
        cur.execute(
            """
            SELECT status, COUNT(*)
            FROM guest_requests
            WHERE hotel_code = %s
            GROUP BY status
            """,
            (hotel_code,),
        )

    counts = {status.value: 0 for status in RequestStatus}
    for status, count in cur.fetchall():
        counts[status] = int(count)
    return counts

"""Hotels repository.

Uses raw SQL with psycopg2 (no ORM). Hotels are provisioned out of band
(see ``alpinebridge.operations.provision_hotel``) and only read at runtime.
"""

from psycopg2.extensions import cursor as PgCursor

from alpinebridge.domain.models import Hotel


def get_hotel(cur: PgCursor, hotel_code: str) -> Hotel | None:
    """Fetch a hotel by its code.

    Args:
        cur: Database cursor.
        hotel_code: Exact hotel code (case-sensitive).

    Returns:
        Hotel, or None if not provisioned.
    """
    cur.execute(
        """
        SELECT hotel_code, hotel_name
        FROM hotels
        WHERE hotel_code = %s
        """,
        (hotel_code,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return Hotel(hotel_code=row[0], hotel_name=row[1])


def list_hotels(cur: PgCursor) -> list[Hotel]:
    """List all hotels ordered by code."""
    cur.execute(
        """
        SELECT hotel_code, hotel_name
        FROM hotels
        ORDER BY hotel_code
        """
    )
    return [Hotel(hotel_code=row[0], hotel_name=row[1]) for row in cur.fetchall()]


def upsert_hotel(cur: PgCursor, *, hotel_code: str, hotel_name: str) -> bool:
    """Insert a hotel or update its name.

    Returns:
        True if a new row was inserted, False if an existing one was updated.
    """
    cur.execute(
        """
        INSERT INTO hotels (hotel_code, hotel_name)
        VALUES (%s, %s)
        ON CONFLICT (hotel_code) DO UPDATE
        SET hotel_name = EXCLUDED.hotel_name,
            updated_at = now()
        RETURNING (xmax = 0) AS inserted
        """,
        (hotel_code, hotel_name),
    )
    row = cur.fetchone()
    return bool(row[0])

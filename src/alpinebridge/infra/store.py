"""Guest request store: the persistence seam used by domain and services.

GuestRequestStore is the interface; PostgresGuestRequestStore implements it
on top of the repositories, one short transaction per call. Tests pass an
in-memory fake instead.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Protocol, Sequence

import psycopg2
from psycopg2.extensions import cursor as PgCursor

from alpinebridge.domain.errors import StorageError
from alpinebridge.domain.models import GuestRequest, Hotel, LogEvent, RequestStatus
from alpinebridge.infra.db import txn
from alpinebridge.infra.repositories import (
    guest_requests_repository,
    hotels_repository,
    request_logs_repository,
)
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context

logger = get_logger(__name__)


class GuestRequestStore(Protocol):
    """Persistence operations needed by ingestion, the protocol service and admin."""

    def get_hotel(self, hotel_code: str) -> Hotel | None: ...

    def list_hotels(self) -> list[Hotel]: ...

    def insert_guest_request(self, request: GuestRequest) -> None: ...

    def list_unacknowledged(self, hotel_code: str) -> list[GuestRequest]: ...

    def mark_sent(self, request_ids: Sequence[str], sent_at: datetime) -> list[str]: ...

    def mark_acknowledged(
        self, request_ids: Sequence[str], acknowledged_at: datetime
    ) -> list[str]: ...

    def list_requests(
        self,
        *,
        hotel_code: str | None = None,
        status: RequestStatus | None = None,
        limit: int = 100,
    ) -> list[GuestRequest]: ...

    def count_by_status(self, hotel_code: str | None = None) -> dict[str, int]: ...


class PostgresGuestRequestStore:
    """GuestRequestStore backed by PostgreSQL (DATABASE_URL)."""

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[PgCursor]:
        try:
            with txn() as cur:
                yield cur
        except psycopg2.Error as exc:
            logger.error(
                "database operation failed",
                extra={
                    "extra_fields": safe_log_context(
                        operation=operation,
                        error_type=type(exc).__name__,
                    )
                },
            )
            raise StorageError(f"{operation} failed") from exc

    def get_hotel(self, hotel_code: str) -> Hotel | None:
        with self._transaction("get_hotel") as cur:
            return hotels_repository.get_hotel(cur, hotel_code)

    def list_hotels(self) -> list[Hotel]:
        with self._transaction("list_hotels") as cur:
            return hotels_repository.list_hotels(cur)

    def upsert_hotel(self, hotel_code: str, hotel_name: str) -> bool:
        with self._transaction("upsert_hotel") as cur:
            return hotels_repository.upsert_hotel(
                cur, hotel_code=hotel_code, hotel_name=hotel_name
            )

    def insert_guest_request(self, request: GuestRequest) -> None:
        """Insert the request and its ``submitted`` log entry in one transaction."""
        with self._transaction("insert_guest_request") as cur:
            guest_requests_repository.insert_guest_request(cur, request)
            request_logs_repository.insert_logs(
                cur,
                request_ids=[request.request_id],
                event=LogEvent.SUBMITTED,
                details={"origin": request.origin} if request.origin else None,
            )

    def list_unacknowledged(self, hotel_code: str) -> list[GuestRequest]:
        with self._transaction("list_unacknowledged") as cur:
            return guest_requests_repository.list_unacknowledged(cur, hotel_code)

    def mark_sent(self, request_ids: Sequence[str], sent_at: datetime) -> list[str]:
        with self._transaction("mark_sent") as cur:
            changed = guest_requests_repository.mark_sent(cur, request_ids, sent_at)
            request_logs_repository.insert_logs(cur, request_ids=changed, event=LogEvent.SENT)
            return changed

    def mark_acknowledged(
        self, request_ids: Sequence[str], acknowledged_at: datetime
    ) -> list[str]:
        with self._transaction("mark_acknowledged") as cur:
            changed = guest_requests_repository.mark_acknowledged(
                cur, request_ids, acknowledged_at
            )
            request_logs_repository.insert_logs(
                cur, request_ids=changed, event=LogEvent.ACKNOWLEDGED
            )
            return changed

    def list_requests(
        self,
        *,
        hotel_code: str | None = None,
        status: RequestStatus | None = None,
        limit: int = 100,
    ) -> list[GuestRequest]:
        with self._transaction("list_requests") as cur:
            return guest_requests_repository.list_requests(
                cur, hotel_code=hotel_code, status=status, limit=limit
            )

    def count_by_status(self, hotel_code: str | None = None) -> dict[str, int]:
        with self._transaction("count_by_status") as cur:
            return guest_requests_repository.count_by_status(cur, hotel_code)


def get_store() -> GuestRequestStore:
    """FastAPI dependency returning the production store."""
    return PostgresGuestRequestStore()

"""Shared test helper functions for AlpineBridge tests.

This module contains helpers that can be imported by both conftest.py and
individual test files. These are NOT fixtures - they are regular functions
and classes.
"""

from __future__ import annotations

import base64
import json
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Sequence

from alpinebridge.domain.errors import StorageError
from alpinebridge.domain.models import (
    UNACKNOWLEDGED_STATUSES,
    GuestRequest,
    Hotel,
    RequestStatus,
    Selection,
)

TEST_HOTEL_CODE = "alpenhof"
TEST_HOTEL_NAME = "Hotel Alpenhof"
TEST_USERNAME = "pms-user"
TEST_PASSWORD = "pms-secret"
TEST_PROTOCOL_VERSION = "2024-10"

# Fixed instant used where tests need deterministic timestamps
T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeGuestRequestStore:
    """In-memory GuestRequestStore.

    ``fail_on`` names methods that raise StorageError, to exercise the
    storage failure paths.
    """

    def __init__(self, hotels: Sequence[Hotel] = ()) -> None:
        self.hotels: dict[str, Hotel] = {h.hotel_code: h for h in hotels}
        self.requests: dict[str, GuestRequest] = {}
        self.logs: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError(f"{operation} failed")

    def get_hotel(self, hotel_code: str) -> Hotel | None:
        self._maybe_fail("get_hotel")
        return self.hotels.get(hotel_code)

    def list_hotels(self) -> list[Hotel]:
        self._maybe_fail("list_hotels")
        return sorted(self.hotels.values(), key=lambda h: h.hotel_code)

    def insert_guest_request(self, request: GuestRequest) -> None:
        self._maybe_fail("insert_guest_request")
        self.requests[request.request_id] = request
        self.logs.append((request.request_id, "submitted"))

    def _newest_first(self, requests: list[GuestRequest]) -> list[GuestRequest]:
        return sorted(requests, key=lambda r: (r.created_at, r.request_id), reverse=True)

    def list_unacknowledged(self, hotel_code: str) -> list[GuestRequest]:
        self._maybe_fail("list_unacknowledged")
        return self._newest_first(
            [
                r
                for r in self.requests.values()
                if r.hotel_code == hotel_code and r.status in UNACKNOWLEDGED_STATUSES
            ]
        )

    def mark_sent(self, request_ids: Sequence[str], sent_at: datetime) -> list[str]:
        self._maybe_fail("mark_sent")
        changed = []
        for rid in request_ids:
            current = self.requests.get(rid)
            if current is not None and current.status is RequestStatus.PENDING:
                self.requests[rid] = replace(current, status=RequestStatus.SENT, sent_at=sent_at)
                self.logs.append((rid, "sent"))
                changed.append(rid)
        return changed

    def mark_acknowledged(
        self, request_ids: Sequence[str], acknowledged_at: datetime
    ) -> list[str]:
        self._maybe_fail("mark_acknowledged")
        changed = []
        for rid in request_ids:
            current = self.requests.get(rid)
            if current is not None and current.status in UNACKNOWLEDGED_STATUSES:
                self.requests[rid] = replace(
                    current,
                    status=RequestStatus.ACKNOWLEDGED,
                    acknowledged_at=acknowledged_at,
                )
                self.logs.append((rid, "acknowledged"))
                changed.append(rid)
        return changed

    def list_requests(
        self,
        *,
        hotel_code: str | None = None,
        status: RequestStatus | None = None,
        limit: int = 100,
    ) -> list[GuestRequest]:
        self._maybe_fail("list_requests")
        selected = [
            r
            for r in self.requests.values()
            if (hotel_code is None or r.hotel_code == hotel_code)
            and (status is None or r.status is status)
        ]
        return self._newest_first(selected)[:limit]

    def count_by_status(self, hotel_code: str | None = None) -> dict[str, int]:
        self._maybe_fail("count_by_status")
        counts = {s.value: 0 for s in RequestStatus}
        for r in self.requests.values():
            if hotel_code is None or r.hotel_code == hotel_code:
                counts[r.status.value] += 1
        return counts


def make_guest_request(**overrides: Any) -> GuestRequest:
    """Build a GuestRequest with sensible defaults."""
    fields: dict[str, Any] = {
        "request_id": "GR_1234567890_alpenhof_ab12c",
        "hotel_code": TEST_HOTEL_CODE,
        "check_in_date": date(2026, 7, 10),
        "check_out_date": date(2026, 7, 17),
        "adult_count": 2,
        "email": "guest@example.com",
        "language": "de",
        "created_at": T0,
        "first_name": "Anna",
        "last_name": "Huber",
        "gender": "Female",
        "phone_number": "+49891234567",
        "room": Selection(raw="DZ|Doppelzimmer", code="DZ", name="Doppelzimmer"),
    }
    fields.update(overrides)
    return GuestRequest(**fields)


def valid_submission(**overrides: Any) -> dict[str, Any]:
    """Build a valid English-keyed booking submission."""
    payload: dict[str, Any] = {
        "email": "guest@example.com",
        "phone": "089 1234567",
        "period": "2026-07-10 - 2026-07-17",
        "adults": 2,
        "children": 0,
        "salutation": "Female",
        "firstName": "Anna",
        "lastName": "Huber",
        "language": "de",
        "selectedRoom": "DZ|Doppelzimmer",
        "selectedOffer": "Keine Angabe",
        "comments": "Late arrival",
    }
    payload.update(overrides)
    return payload


def basic_auth_header(username: str = TEST_USERNAME, password: str = TEST_PASSWORD) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def alpinebits_headers(**overrides: str) -> dict[str, str]:
    """Headers of an authenticated AlpineBits request."""
    headers = {
        "Authorization": basic_auth_header(),
        "X-AlpineBits-ClientProtocolVersion": TEST_PROTOCOL_VERSION,
        "X-AlpineBits-ClientID": "pms-client-1",
    }
    headers.update(overrides)
    return headers


def capability_document(*actions: dict[str, Any], version: str = "2024-10") -> dict[str, Any]:
    return {"versions": [{"version": version, "actions": list(actions)}]}


def ping_xml(echo_data: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<OTA_PingRQ xmlns="http://www.opentravel.org/OTA/2003/05" Version="8.000">'
        f"<EchoData>{echo_data}</EchoData>"
        "</OTA_PingRQ>"
    )


def ping_xml_for(document: dict[str, Any]) -> str:
    return ping_xml(json.dumps(document))


def read_xml(hotel_code: str = TEST_HOTEL_CODE) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<OTA_ReadRQ xmlns="http://www.opentravel.org/OTA/2003/05" Version="7.000">\n'
        "  <ReadRequests>\n"
        f'    <HotelReadRequest HotelCode="{hotel_code}">\n'
        '      <SelectionCriteria SelectionType="Undelivered"/>\n'
        "    </HotelReadRequest>\n"
        "  </ReadRequests>\n"
        "</OTA_ReadRQ>"
    )


def notif_report_xml(*request_ids: str) -> str:
    reservations = "".join(
        f'<HotelReservation><UniqueID Type="14" ID="{rid}"/></HotelReservation>'
        for rid in request_ids
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<OTA_NotifReportRQ xmlns="http://www.opentravel.org/OTA/2003/05" Version="7.000">'
        "<Success/>"
        "<NotifDetails><HotelNotifReport><HotelReservations>"
        f"{reservations}"
        "</HotelReservations></HotelNotifReport></NotifDetails>"
        "</OTA_NotifReportRQ>"
    )

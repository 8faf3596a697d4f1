"""Guest request domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class RequestStatus(str, Enum):
    """Lifecycle of a guest request: pending -> sent -> acknowledged."""

    PENDING = "pending"
    SENT = "sent"
    ACKNOWLEDGED = "acknowledged"


# Statuses the PMS still has to acknowledge
UNACKNOWLEDGED_STATUSES = (RequestStatus.PENDING, RequestStatus.SENT)


class LogEvent(str, Enum):
    """Event types written to the request_logs audit trail."""

    SUBMITTED = "submitted"
    SENT = "sent"
    ACKNOWLEDGED = "acknowledged"


@dataclass(frozen=True)
class Hotel:
    hotel_code: str
    hotel_name: str


@dataclass(frozen=True)
class Selection:
    """Room or offer picked on the booking form.

    ``raw`` is the submitted value (``CODE|Name`` or ``Name``); code and name
    are the parsed parts. All three are None when nothing was selected.
    """

    raw: str | None = None
    code: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class GuestRequest:
    """A normalized booking inquiry awaiting relay to the PMS.

    ``child_ages`` may hold fewer entries than ``children_count``: ages are
    supplied per form slot and empty slots are dropped.
    """

    request_id: str
    hotel_code: str
    check_in_date: date
    check_out_date: date
    adult_count: int
    email: str
    language: str
    created_at: datetime
    children_count: int = 0
    child_ages: list[int] = field(default_factory=list)
    room: Selection = field(default_factory=Selection)
    offer: Selection = field(default_factory=Selection)
    gender: str = ""
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    comments: str | None = None
    origin: str | None = None
    status: RequestStatus = RequestStatus.PENDING
    sent_at: datetime | None = None
    acknowledged_at: datetime | None = None

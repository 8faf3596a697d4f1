"""Guest request state machine.

    pending --(Read)--> sent --(NotifReport)--> acknowledged

Transitions are monotonic. A Read moves only pending rows to sent, yet the
Read response carries the whole unacknowledged backlog, so a PMS that polls
without acknowledging keeps seeing the same requests.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from .models import GuestRequest, RequestStatus

_ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.SENT, RequestStatus.ACKNOWLEDGED}),
    RequestStatus.SENT: frozenset({RequestStatus.ACKNOWLEDGED}),
    RequestStatus.ACKNOWLEDGED: frozenset(),
}


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    """Check whether ``current -> target`` is a legal lifecycle step.

    pending -> acknowledged is allowed: a PMS may acknowledge an ID it
    learned out of band before a Read delivered it.
    """
    return target in _ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True)
class ReadPlan:
    """Outcome of planning a Read.

    Attributes:
        to_mark_sent: IDs to move pending -> sent, in backlog order.
        response: Every backlog entry, in backlog order, with planned status.
    """

    to_mark_sent: list[str]
    response: list[GuestRequest]


def plan_read(backlog: Iterable[GuestRequest]) -> ReadPlan:
    """Plan the state changes and the response set for a Read.

    Args:
        backlog: Unacknowledged requests of one hotel, newest first.

    Returns:
        ReadPlan; entries already acknowledged are ignored.
    """
    to_mark_sent: list[str] = []
    response: list[GuestRequest] = []

    for request in backlog:
        if request.status is RequestStatus.ACKNOWLEDGED:
            continue
        if request.status is RequestStatus.PENDING:
            to_mark_sent.append(request.request_id)
            request = replace(request, status=RequestStatus.SENT)
        response.append(request)

    return ReadPlan(to_mark_sent=to_mark_sent, response=response)


def plan_acknowledge(request_ids: Iterable[str]) -> list[str]:
    """Deduplicate acknowledged IDs, keeping first-seen order."""
    return list(dict.fromkeys(rid for rid in request_ids if rid))

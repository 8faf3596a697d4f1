"""Guest request ingestion: submission -> pending GuestRequest.

Steps:
  1. Resolve the hotel (UnknownHotelError, nothing stored).
  2. Validate every rule (SubmissionValidationError lists all violations).
  3. Transform into canonical fields.
  4. Persist the row and its ``submitted`` log entry atomically.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from alpinebridge.infra.settings import get_app_settings
from alpinebridge.infra.time import utc_now
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import identifier_prefix, safe_log_context

from .errors import SubmissionValidationError, UnknownHotelError
from .models import GuestRequest, RequestStatus
from .transformers import (
    extract_child_ages,
    format_phone_number,
    generate_request_id,
    parse_period,
    parse_selection,
)
from .validators import submission_gender, validate_submission

if TYPE_CHECKING:
    from alpinebridge.infra.store import GuestRequestStore

logger = get_logger(__name__)


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def build_guest_request(
    hotel_code: str,
    payload: dict[str, Any],
    *,
    now: datetime,
    default_language: str,
) -> GuestRequest:
    """Transform a validated submission into a pending GuestRequest."""
    check_in, check_out = parse_period(payload["period"])

    submitted_language = _clean_text(payload.get("language"))
    language = submitted_language or default_language
    phone = _clean_text(payload.get("phone"))
    gender = _clean_text(submission_gender(payload)) or ""
    children = payload.get("children")

    return GuestRequest(
        request_id=generate_request_id(hotel_code),
        hotel_code=hotel_code,
        check_in_date=check_in,
        check_out_date=check_out,
        adult_count=int(payload["adults"]),
        children_count=int(children) if children is not None else 0,
        child_ages=extract_child_ages(payload),
        room=parse_selection(payload.get("selectedRoom")),
        offer=parse_selection(payload.get("selectedOffer")),
        gender=gender,
        first_name=_clean_text(payload.get("firstName")) or "",
        last_name=_clean_text(payload.get("lastName")) or "",
        phone_number=format_phone_number(phone, submitted_language) if phone else "",
        email=payload["email"].strip(),
        language=language,
        comments=_clean_text(payload.get("comments")),
        origin=_clean_text(payload.get("origin")),
        status=RequestStatus.PENDING,
        created_at=now,
    )


def ingest_submission(
    store: GuestRequestStore,
    hotel_code: str,
    payload: dict[str, Any],
    *,
    now: datetime | None = None,
) -> str:
    """Validate, normalize and store a booking submission.

    Args:
        store: Guest request store.
        hotel_code: Target hotel code from the URL.
        payload: English-keyed submission dict.
        now: Creation timestamp override (tests).

    Returns:
        The generated request_id.

    Raises:
        UnknownHotelError: Hotel code is not provisioned.
        SubmissionValidationError: One or more rules violated.
        StorageError: The request could not be persisted.
    """
    hotel = store.get_hotel(hotel_code)
    if hotel is None:
        raise UnknownHotelError(hotel_code)

    errors = validate_submission(payload)
    if errors:
        raise SubmissionValidationError(errors)

    request = build_guest_request(
        hotel.hotel_code,
        payload,
        now=now or utc_now(),
        default_language=get_app_settings().default_language,
    )
    store.insert_guest_request(request)

    logger.info(
        "guest request stored",
        extra={
            "extra_fields": safe_log_context(
                hotel_code=hotel.hotel_code,
                request_id_prefix=identifier_prefix(request.request_id),
                adults=request.adult_count,
                children=request.children_count,
            )
        },
    )
    return request.request_id

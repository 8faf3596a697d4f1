"""Admin read endpoints, protected by the X-API-Key header.

Responses never contain guest contact data (names, email, phone, comments).
"""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from alpinebridge.api.routes.submit import error_response
from alpinebridge.domain.errors import StorageError
from alpinebridge.domain.models import GuestRequest, RequestStatus
from alpinebridge.infra.settings import get_app_settings
from alpinebridge.infra.store import GuestRequestStore, get_store
from alpinebridge.infra.time import iso_timestamp
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context

router = APIRouter(prefix="/admin", tags=["admin"])

logger = get_logger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


def _check_api_key(x_api_key: str | None) -> JSONResponse | None:
    """Return an error response when the API key is not accepted."""
    expected = get_app_settings().admin_api_key
    if not expected:
        logger.error(
            "ADMIN_API_KEY not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_admin_key_env")},
        )
        return error_response(
            500, "AUTH_NOT_CONFIGURED", "Authentication is not properly configured"
        )
    if not x_api_key:
        return error_response(
            401,
            "MISSING_API_KEY",
            "API key is required. Provide it in the X-API-Key header.",
        )
    if not hmac.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(
            "admin auth failed",
            extra={"extra_fields": safe_log_context(reason="invalid_api_key")},
        )
        return error_response(403, "INVALID_API_KEY", "Invalid API key provided")
    return None


def _request_summary(request: GuestRequest) -> dict:
    return {
        "requestId": request.request_id,
        "hotelCode": request.hotel_code,
        "status": request.status.value,
        "checkIn": request.check_in_date.isoformat(),
        "checkOut": request.check_out_date.isoformat(),
        "adults": request.adult_count,
        "children": request.children_count,
        "language": request.language,
        "roomCode": request.room.code,
        "offerCode": request.offer.code,
        "origin": request.origin,
        "createdAt": iso_timestamp(request.created_at),
        "sentAt": iso_timestamp(request.sent_at) if request.sent_at else None,
        "acknowledgedAt": (
            iso_timestamp(request.acknowledged_at) if request.acknowledged_at else None
        ),
    }


def _database_error(operation: str) -> JSONResponse:
    logger.error(
        "admin query failed",
        extra={"extra_fields": safe_log_context(operation=operation)},
    )
    return error_response(500, "DATABASE_ERROR", f"Failed to {operation}")


@router.get("/hotels")
async def list_hotels(
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    store: GuestRequestStore = Depends(get_store),
):
    """List provisioned hotels."""
    denied = _check_api_key(x_api_key)
    if denied is not None:
        return denied

    try:
        hotels = await run_in_threadpool(store.list_hotels)
    except StorageError:
        return _database_error("list hotels")

    return {
        "hotels": [{"hotelCode": h.hotel_code, "hotelName": h.hotel_name} for h in hotels]
    }


@router.get("/requests")
async def list_requests(
    hotel_code: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(DEFAULT_LIMIT),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    store: GuestRequestStore = Depends(get_store),
):
    """List guest requests newest first, optionally filtered."""
    denied = _check_api_key(x_api_key)
    if denied is not None:
        return denied

    status_filter: RequestStatus | None = None
    if status:
        try:
            status_filter = RequestStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in RequestStatus)
            return error_response(
                400, "VALIDATION_ERROR", f"Invalid status '{status}', expected one of: {allowed}"
            )
    if not 1 <= limit <= MAX_LIMIT:
        return error_response(
            400, "VALIDATION_ERROR", f"limit must be between 1 and {MAX_LIMIT}"
        )

    try:
        requests = await run_in_threadpool(
            lambda: store.list_requests(
                hotel_code=hotel_code or None, status=status_filter, limit=limit
            )
        )
    except StorageError:
        return _database_error("list guest requests")

    return {
        "requests": [_request_summary(r) for r in requests],
        "count": len(requests),
    }


@router.get("/stats")
async def request_stats(
    hotel_code: str | None = Query(None),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    store: GuestRequestStore = Depends(get_store),
):
    """Count guest requests per status."""
    denied = _check_api_key(x_api_key)
    if denied is not None:
        return denied

    try:
        counts = await run_in_threadpool(store.count_by_status, hotel_code or None)
    except StorageError:
        return _database_error("count guest requests")

    return {
        "hotelCode": hotel_code or None,
        "counts": counts,
        "total": sum(counts.values()),
    }

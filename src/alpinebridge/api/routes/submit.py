"""Booking form submission endpoint.

The marketing site posts an English-keyed JSON object to
``/submit/{hotel_code}``; a pending guest request is stored for the PMS.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from starlette.concurrency import run_in_threadpool

from alpinebridge.domain.errors import (
    StorageError,
    SubmissionValidationError,
    UnknownHotelError,
)
from alpinebridge.domain.ingestion import ingest_submission
from alpinebridge.infra.store import GuestRequestStore, get_store
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context

router = APIRouter(prefix="/submit", tags=["submit"])

logger = get_logger(__name__)


# ── Schemas ───────────────────────────────────────────────────────────────────


class SubmitResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True
    requestId: str
    message: str = "Request received successfully"


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = False
    error: str
    message: str


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Build the ``{success: false, error, message}`` JSON error body."""
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ── Routes ────────────────────────────────────────────────────────────────────


async def _read_payload(request: Request) -> dict[str, Any] | None:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


@router.post("/{hotel_code}", status_code=201, response_model=SubmitResponse)
async def submit(
    request: Request,
    hotel_code: str = Path(..., min_length=1),
    store: GuestRequestStore = Depends(get_store),
):
    """Validate and store one booking inquiry.

    Returns:
        201 with the generated requestId; 404 INVALID_HOTEL, 400
        VALIDATION_ERROR, 500 DATABASE_ERROR or 500 INTERNAL_ERROR otherwise.
    """
    payload = await _read_payload(request)
    if payload is None:
        return error_response(400, "VALIDATION_ERROR", "Request body must be a JSON object")

    try:
        request_id = await run_in_threadpool(ingest_submission, store, hotel_code, payload)
    except UnknownHotelError as exc:
        logger.warning(
            "submission for unknown hotel",
            extra={"extra_fields": safe_log_context(hotel_code=hotel_code)},
        )
        return error_response(404, "INVALID_HOTEL", str(exc))
    except SubmissionValidationError as exc:
        logger.info(
            "submission rejected",
            extra={
                "extra_fields": safe_log_context(
                    hotel_code=hotel_code,
                    violations=len(exc.messages),
                )
            },
        )
        return error_response(400, "VALIDATION_ERROR", str(exc))
    except StorageError:
        return error_response(500, "DATABASE_ERROR", "Failed to store guest request")
    except Exception:
        logger.exception(
            "submission failed",
            extra={"extra_fields": safe_log_context(hotel_code=hotel_code)},
        )
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")

    return SubmitResponse(requestId=request_id)

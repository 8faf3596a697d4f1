"""AlpineBits endpoint: OTA-XML over multipart/form-data.

Envelope errors are plain text prefixed ``ERROR:``, never JSON. Action level
errors are OTA ``<Errors>`` documents produced by the service.
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from alpinebridge.alpinebits.actions import ProtocolAction
from alpinebridge.api.alpinebits_auth import BASIC_CHALLENGE, authenticate_alpinebits
from alpinebridge.domain.errors import AuthError, UnsupportedActionError
from alpinebridge.infra.store import GuestRequestStore, get_store
from alpinebridge.observability.context import (
    reset_alpinebits_client_id,
    set_alpinebits_client_id,
)
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import safe_log_context
from alpinebridge.services.alpinebits_service import AlpineBitsService

router = APIRouter(tags=["alpinebits"])

logger = get_logger(__name__)

MULTIPART_CONTENT_TYPE = "multipart/form-data"


def _error_text(status_code: int, reason: str, headers: dict[str, str] | None = None) -> Response:
    return PlainTextResponse(f"ERROR:{reason}", status_code=status_code, headers=headers)


async def _field_text(value: object) -> str | None:
    """Read a form field given inline or as a file part, decoded as UTF-8."""
    if isinstance(value, UploadFile):
        data = await value.read()
        return data.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


@router.post("/alpinebits")
async def alpinebits(
    request: Request,
    store: GuestRequestStore = Depends(get_store),
) -> Response:
    """Serve OTA_Ping, OTA_Read and OTA_NotifReport for a PMS.

    Form fields:
        action: ``OTA_Ping:Handshaking``, ``OTA_Read:GuestRequests`` or
            ``OTA_NotifReport:GuestRequests`` (``action_OTA_*`` also accepted).
        request: The OTA-XML document, inline or as a file part.
    """
    try:
        context = authenticate_alpinebits(request)
    except AuthError as exc:
        headers = {"WWW-Authenticate": BASIC_CHALLENGE} if exc.challenge else None
        return _error_text(exc.status_code, exc.reason, headers)

    token = set_alpinebits_client_id(context.client_id or "")
    try:
        content_type = request.headers.get("content-type", "")
        if not content_type.lower().startswith(MULTIPART_CONTENT_TYPE):
            return _error_text(400, "invalid content type, multipart/form-data required")

        form = await request.form()
        action_value = await _field_text(form.get("action"))
        if not action_value or not action_value.strip():
            return _error_text(400, "missing or invalid action parameter")

        try:
            action = ProtocolAction.from_wire(action_value.strip())
        except UnsupportedActionError as exc:
            logger.warning(
                "alpinebits unknown action",
                extra={"extra_fields": safe_log_context(action=exc.action[:64])},
            )
            return _error_text(400, str(exc))

        xml = await _field_text(form.get("request"))
        if not xml or not xml.strip():
            return _error_text(400, f"missing request parameter for {action.message}")

        service = AlpineBitsService(store)
        result = await run_in_threadpool(service.handle, action, xml, context=context)
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
        )
    except Exception:
        logger.exception(
            "alpinebits request failed",
            extra={"extra_fields": safe_log_context(protocol_version=context.protocol_version)},
        )
        return _error_text(500, "internal server error")
    finally:
        reset_alpinebits_client_id(token)
